"""
Module entry point for: python -m exam_import

Allows running the importer directly as a module:
    python -m exam_import parse <file> [options]
    python -m exam_import batch <directory> [options]
    python -m exam_import serve [options]
"""

from .cli import cli


def main():
    cli()


if __name__ == "__main__":
    main()
