"""MP4 box parsing, PSSH key id extraction, subtitle extraction and segment merging."""

__version__ = "0.1.0"