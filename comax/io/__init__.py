"""Import parsing and export serialization for localization resources."""

from comax.io.importer import parse_import_file, validate_items
from comax.io.exporter import export_csv, export_xlsx, export_key_value_json, export_filename

__all__ = [
    "parse_import_file",
    "validate_items",
    "export_csv",
    "export_xlsx",
    "export_key_value_json",
    "export_filename",
]
