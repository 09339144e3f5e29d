"""
Converter Helper Functions - Archive extraction and GeoJSON reading.

These functions are used by the conversion service and the loaders but are
independent and reusable.
"""

import json
import os
import zipfile
from typing import Any, Dict, List

from exceptions import ConversionError
from util_logger import LoggerFactory, ComponentType

logger = LoggerFactory.create_logger(ComponentType.SERVICE, "ConverterHelpers")


def extract_zip_file(
    archive_path: str,
    target_dir: str,
    target_extension: str = "shp"
) -> List[str]:
    """
    Extract an archive into a directory, flattening member paths.

    Every member is written directly under target_dir (directory structure
    inside the archive is discarded, like ``unzip -j``).

    Args:
        archive_path: Path of the zip archive
        target_dir: Existing directory to extract into
        target_extension: Extension of the members to return

    Returns:
        Sorted absolute paths of the extracted members with that extension

    Raises:
        ConversionError: Archive is corrupt or holds no matching member

    Example:
        shp_paths = extract_zip_file('/tmp/job/upload.zip', '/tmp/job/extract')
        # ['/tmp/job/extract/rivers.shp', '/tmp/job/extract/roads.shp']
    """
    target_ext = target_extension.lower().lstrip('.')

    logger.debug(f"Extracting {archive_path} into {target_dir}")

    try:
        with zipfile.ZipFile(archive_path) as z:
            for info in z.infolist():
                # Skip directories
                if info.is_dir():
                    continue

                flat_name = os.path.basename(info.filename)
                if not flat_name:
                    continue

                with z.open(info) as src, open(os.path.join(target_dir, flat_name), 'wb') as dst:
                    while True:
                        chunk = src.read(1024 * 1024)
                        if not chunk:
                            break
                        dst.write(chunk)
    except zipfile.BadZipFile as e:
        raise ConversionError(f"Failed to extract zip archive: {e}") from e

    matching_files = sorted(
        os.path.join(target_dir, name)
        for name in os.listdir(target_dir)
        if name.lower().endswith(f'.{target_ext}')
    )

    if not matching_files:
        raise ConversionError(f"No .{target_ext} files found in the zip archive.")

    logger.info(f"Found {len(matching_files)} .{target_ext} file(s): {[os.path.basename(p) for p in matching_files]}")
    return matching_files


def read_geojson_features(path: str) -> List[Dict[str, Any]]:
    """
    Read the features of a GeoJSON FeatureCollection.

    Raises:
        ConversionError: File is not valid GeoJSON
    """
    try:
        with open(path, 'r', encoding='utf-8') as f:
            data = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        raise ConversionError(f"Failed to read converted output {path}: {e}") from e

    if isinstance(data, dict) and data.get('type') == 'FeatureCollection':
        return [f for f in data.get('features') or [] if isinstance(f, dict)]
    if isinstance(data, dict) and data.get('type') == 'Feature':
        return [data]
    raise ConversionError(f"Converted output {path} is not a GeoJSON FeatureCollection")
