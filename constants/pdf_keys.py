"""
PDF Dictionary Keys and Name Constants
"""

# Object Types and Subtypes
KEY_TYPE = "/Type"
KEY_SUBTYPE = "/Subtype"
VAL_XOBJECT = "/XObject"
VAL_IMAGE = "/Image"

# Image Properties
KEY_WIDTH = "/Width"
KEY_HEIGHT = "/Height"
KEY_NAME = "/Name"
KEY_BITS_PER_COMPONENT = "/BitsPerComponent"
KEY_COLOR_SPACE = "/ColorSpace"
KEY_SOFT_MASK = "/SMask"
KEY_FILTER = "/Filter"

# Color Spaces
VAL_DEVICE_GRAY = "/DeviceGray"
VAL_DEVICE_RGB = "/DeviceRGB"

# Stream Filters
VAL_FLATE_DECODE = "/FlateDecode"
VAL_DCT_DECODE = "/DCTDecode"
JPEG_FILTERS = ("/DCTDecode", "/DCT")  # Full and abbreviated names

DEFAULT_BITS_PER_COMPONENT = 8
