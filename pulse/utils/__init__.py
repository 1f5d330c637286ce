from .logging_setup import set_logger

__all__ = ["set_logger"]
