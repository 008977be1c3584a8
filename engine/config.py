"""
Configuration system for PDF Engine.

Provides structured configuration using dataclasses with clear defaults,
type safety, and backward compatibility with dict-based configs.
"""

from dataclasses import dataclass, fields
from typing import Optional, Dict, Any
import logging

logger = logging.getLogger(__name__)


def _filter_known_keys(cls, config: Dict[str, Any]) -> Dict[str, Any]:
    """Keep only keys that are fields of cls, warning about the rest."""
    valid_keys = {f.name for f in fields(cls)}
    filtered_config = {}
    for key, value in config.items():
        if key in valid_keys:
            filtered_config[key] = value
        else:
            logger.warning(f"Unknown config key '{key}' will be ignored")
    return filtered_config


@dataclass
class ImageProcessorOptions:
    """
    Configuration options for image reassembly.
    """
    pad_short_streams: bool = True  # Zero-pad inflated data shorter than width*height*components
    optimize_png: bool = False  # Pillow's optimize flag, slower but smaller output

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            'pad_short_streams': self.pad_short_streams,
            'optimize_png': self.optimize_png,
        }

    @classmethod
    def from_dict(cls, config: Dict[str, Any]) -> 'ImageProcessorOptions':
        """Create from dictionary, ignoring unknown keys."""
        return cls(**_filter_known_keys(cls, config))


@dataclass
class ExtractorOptions:
    """
    Output options for an extraction run.

    Exactly one output mode must be selected: in-memory (results returned
    to the caller) or directory (results written as out<N>.<ext>).

    Example:
        >>> options = ExtractorOptions(output_directory="images")
        >>> options = ExtractorOptions(in_memory=True)
    """
    output_directory: Optional[str] = None
    in_memory: bool = False

    # Write every file as out<N>.png, even JPEG pass-through data
    legacy_png_extension: bool = False

    # Abort the run on the first image that fails to decode
    strict: bool = False

    def validate(self) -> bool:
        """
        Validate that exactly one output mode is selected.

        Returns:
            True if valid, False otherwise
        """
        if self.in_memory and self.output_directory:
            logger.error("in_memory and output_directory are mutually exclusive")
            return False

        if not self.in_memory and not self.output_directory:
            logger.error("output_directory is required unless in_memory is set")
            return False

        return True

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            'output_directory': self.output_directory,
            'in_memory': self.in_memory,
            'legacy_png_extension': self.legacy_png_extension,
            'strict': self.strict,
        }


@dataclass
class EngineConfig:
    """
    Central configuration for PDFEngine initialization.

    Example:
        >>> config = EngineConfig(max_file_size_mb=100)
        >>> engine = PDFEngine(file_path, config=config)
    """

    # Resource management
    enable_caching: bool = True  # Cache rendered image bytes per record

    # Processor-specific options (as dictionaries for flexibility)
    image_processor_options: Optional[Dict[str, Any]] = None

    # Validation
    validate_on_open: bool = True
    max_file_size_mb: int = 50

    def validate(self) -> bool:
        """
        Validate configuration values.

        Returns:
            True if all values are valid, False otherwise
        """
        if self.max_file_size_mb < 1:
            logger.error("max_file_size_mb must be at least 1 MB")
            return False

        return True

    def image_options(self) -> ImageProcessorOptions:
        """Build the image processor options from the dictionary form."""
        return ImageProcessorOptions.from_dict(self.image_processor_options or {})

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert configuration to dictionary.

        Useful for serialization, logging, and debugging.
        """
        return {
            'enable_caching': self.enable_caching,
            'image_processor_options': self.image_processor_options,
            'validate_on_open': self.validate_on_open,
            'max_file_size_mb': self.max_file_size_mb,
        }

    @classmethod
    def from_dict(cls, config: Dict[str, Any]) -> 'EngineConfig':
        """
        Create EngineConfig from dictionary.

        Unknown keys are ignored with a warning.

        Args:
            config: Dictionary of configuration values

        Returns:
            EngineConfig instance
        """
        return cls(**_filter_known_keys(cls, config))

    @classmethod
    def default(cls) -> 'EngineConfig':
        """Create configuration with default values."""
        return cls()

    def __repr__(self) -> str:
        """String representation for debugging."""
        return (
            f"EngineConfig("
            f"caching={self.enable_caching}, "
            f"validate={self.validate_on_open}, "
            f"max_size={self.max_file_size_mb}MB)"
        )
