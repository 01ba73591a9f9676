from .render import batch_to_json, format_value, print_batch_table, values_table

__all__ = ["batch_to_json", "format_value", "print_batch_table", "values_table"]
