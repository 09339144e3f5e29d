"""
Base Protocol for Geometry Converters.

This defines the interface that all converters should implement.
It's a Protocol (not a base class) - converters don't inherit from it,
but it provides type hints and documentation.
"""

from typing import Protocol, runtime_checkable

from core.models import ConversionResult


@runtime_checkable
class Converter(Protocol):
    """
    Protocol defining the interface for archive member converters.

    All converters must implement:
    - async convert() taking one source file and writing one GeoJSON file

    Converters do NOT inherit from this class - it's just a protocol
    for type checking and documentation.

    Example:
        class Ogr2OgrConverter:  # No inheritance!

            async def convert(self, input_path: str, output_path: str) -> ConversionResult:
                # Implementation here
                pass
    """

    async def convert(self, input_path: str, output_path: str) -> ConversionResult:
        """
        Convert one source file to GeoJSON in EPSG:4326.

        Args:
            input_path: Source file (e.g. an extracted .shp)
            output_path: GeoJSON file to write

        Returns:
            ConversionResult with converter diagnostics

        Raises:
            ConversionError: If the conversion fails
        """
        ...
