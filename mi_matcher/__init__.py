"""MI / billing spreadsheet matcher.

Builds a serial-number dictionary from a ZIP of billing spreadsheets and appends
the matched billing value to every row of an MI spreadsheet.
"""

__version__ = "0.1.0"
