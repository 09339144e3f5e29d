"""
ogr2ogr Converter.

Shells out to GDAL's ogr2ogr through an asyncio subprocess:

    ogr2ogr -f GeoJSON -t_srs EPSG:4326 -lco RFC7946=YES -makevalid <out> <in>

The output is reprojected, uses RFC 7946 winding order and has invalid
geometries repaired. If the awaiting task is cancelled the child process
is killed before the cancellation propagates.
"""

import asyncio
from typing import List

from core.models import ConversionResult
from exceptions import ConversionError
from util_logger import LoggerFactory, ComponentType


class Ogr2OgrConverter:
    """
    Converter implementation backed by the ogr2ogr executable.
    """

    def __init__(self, executable: str = "ogr2ogr", target_srs: str = "EPSG:4326"):
        self.executable = executable
        self.target_srs = target_srs
        self.logger = LoggerFactory.create_logger(ComponentType.ADAPTER, "Ogr2OgrConverter")

    @classmethod
    def from_config(cls, vector_config) -> "Ogr2OgrConverter":
        return cls(executable=vector_config.ogr2ogr_path, target_srs=vector_config.target_srs)

    def build_command(self, input_path: str, output_path: str) -> List[str]:
        return [
            self.executable,
            "-f", "GeoJSON",
            "-t_srs", self.target_srs,
            "-lco", "RFC7946=YES",
            "-makevalid",
            output_path,
            input_path,
        ]

    async def convert(self, input_path: str, output_path: str) -> ConversionResult:
        command = self.build_command(input_path, output_path)
        self.logger.debug(f"Running: {' '.join(command)}")

        try:
            process = await asyncio.create_subprocess_exec(
                *command,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE
            )
        except OSError as e:
            raise ConversionError(f"Failed to start {self.executable} for {input_path}: {e}") from e

        try:
            _, stderr = await process.communicate()
        except asyncio.CancelledError:
            self._kill(process)
            await process.wait()
            raise

        diagnostics = stderr.decode("utf-8", errors="replace").strip() if stderr else ""

        if process.returncode != 0:
            raise ConversionError(
                f"ogr2ogr failed for {input_path} (exit code {process.returncode}): {diagnostics}"
            )

        if diagnostics:
            self.logger.warning(f"ogr2ogr diagnostics for {input_path}: {diagnostics}")

        return ConversionResult(source_path=input_path, output_path=output_path, diagnostics=diagnostics)

    def _kill(self, process: asyncio.subprocess.Process) -> None:
        if process.returncode is None:
            try:
                process.kill()
            except ProcessLookupError:
                pass
            self.logger.info(f"Killed ogr2ogr (pid {process.pid}) after cancellation")
