from .render import render, write_files

__all__ = ["render", "write_files"]
