"""
Conversion Service - Archive Extraction and Converter Fan-out.

Extracts an archive into the job work directory, then converts every .shp
member concurrently. The whole step succeeds only if every member converts;
on the first failure the remaining conversions are cancelled (their child
processes killed) and the failure is raised.

Exports:
    ConversionService: Extract + convert_members
    convert_members: Fan-out/fan-in over a Converter
"""

import asyncio
import os
from typing import Callable, List, Optional

from core.models import ConversionResult
from exceptions import ConversionError
from util_logger import LoggerFactory, ComponentType
from vector.converter_base import Converter
from vector.converter_helpers import extract_zip_file


logger = LoggerFactory.create_logger(ComponentType.SERVICE, "ConversionService")


def intermediate_path(work_dir: str, index: int) -> str:
    return os.path.join(work_dir, f"intermediate-{index}.geojson")


async def convert_members(
    converter: Converter,
    member_paths: List[str],
    work_dir: str,
    on_diagnostics: Optional[Callable[[ConversionResult], None]] = None
) -> List[ConversionResult]:
    """
    Convert every member concurrently and wait for all of them.

    Args:
        converter: Converter implementation
        member_paths: Members in order; output i is intermediate-<i>.geojson
        work_dir: Directory receiving the intermediate files
        on_diagnostics: Called for each result carrying converter warnings

    Returns:
        Results in member order

    Raises:
        ConversionError: First member failure; pending conversions are cancelled
    """
    tasks = [
        asyncio.ensure_future(converter.convert(path, intermediate_path(work_dir, index)))
        for index, path in enumerate(member_paths)
    ]

    try:
        done, pending = await asyncio.wait(tasks, return_when=asyncio.FIRST_EXCEPTION)
    except asyncio.CancelledError:
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        raise

    failed = [task for task in tasks if task.done() and not task.cancelled() and task.exception() is not None]
    if failed:
        for task in pending:
            task.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)
        # Retrieve every exception so none is reported as unhandled
        for task in failed[1:]:
            task.exception()
        error = failed[0].exception()
        if isinstance(error, ConversionError):
            raise error
        raise ConversionError(f"Conversion failed: {error}") from error

    results = [task.result() for task in tasks]
    if on_diagnostics is not None:
        for result in results:
            if result.diagnostics:
                on_diagnostics(result)
    return results


class ConversionService:
    """
    Extract an archive and convert its members.

    Usage:
        service = ConversionService(Ogr2OgrConverter())
        results = await service.convert_archive('/tmp/job/a.zip', '/tmp/job')
    """

    def __init__(self, converter: Converter):
        self.converter = converter

    async def convert_archive(
        self,
        archive_path: str,
        work_dir: str,
        on_diagnostics: Optional[Callable[[ConversionResult], None]] = None
    ) -> List[ConversionResult]:
        extract_dir = os.path.join(work_dir, "extracted")
        os.makedirs(extract_dir, exist_ok=True)

        member_paths = await asyncio.to_thread(extract_zip_file, archive_path, extract_dir, "shp")
        logger.info(f"Converting {len(member_paths)} member(s) from {os.path.basename(archive_path)}")

        return await convert_members(self.converter, member_paths, work_dir, on_diagnostics)
