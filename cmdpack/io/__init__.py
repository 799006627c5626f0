"""Input/Output operations for cmdpack.

Modules:

download : module
    HTTP(S) artifact download with retries, atomic writes, and checksums.

Public API:

download_file : function
    Download a file from a URL into a folder.

Example:
    from pathlib import Path
    from cmdpack.io import download_file

    file_path, sha256 = download_file(
        url="https://repo.example.com/libs/util-2.1.jar",
        destination_folder=Path("./cache"),
    )

"""

from .download import download_file, filename_from_url, make_session, sha256_file

__all__ = ["download_file", "filename_from_url", "make_session", "sha256_file"]
