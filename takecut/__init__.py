"""TakeCut - non-destructive trim and cut editor for recorded takes."""

__version__ = "0.1.0"
__app_name__ = "TakeCut"
