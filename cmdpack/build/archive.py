"""Tar archive codec for cmdpack.

pack() writes a staging tree into a (possibly compressed) tar archive and
unpack() extracts one. Compression is chosen by the Compression policy.

When include_root is True, every entry is prefixed with the staging
directory's own name (svc-1.0/bin/run). When False, entries are relative to
the staging directory's contents (bin/run).

Example:
    from pathlib import Path
    from cmdpack.build.archive import pack, unpack
    from cmdpack.compression import Compression

    pack(Path("build/package/svc-1.0"), Path("dist/svc-1.0.tar.gz"),
         Compression.GZIP, include_root=True)
    unpack(Path("dist/svc-1.0.tar.gz"), Path("/opt/apps"), Compression.GZIP)
"""

from __future__ import annotations

from pathlib import Path
import tarfile

from cmdpack.compression import Compression


def pack(
    source_dir: Path,
    archive_path: Path,
    compression: Compression,
    include_root: bool = True,
) -> Path:
    """Pack source_dir into archive_path.

    Entries are added in sorted order so the same tree always produces the
    same member order. An existing archive is overwritten.

    Raises:
        OSError: If reading the tree or writing the archive fails.
        tarfile.TarError: If the archive cannot be written.
    """
    archive_path.parent.mkdir(parents=True, exist_ok=True)

    with tarfile.open(archive_path, compression.write_mode()) as tf:
        if include_root:
            tf.add(source_dir, arcname=source_dir.name, recursive=False)
        for p in sorted(source_dir.rglob("*")):
            rel = p.relative_to(source_dir).as_posix()
            arcname = f"{source_dir.name}/{rel}" if include_root else rel
            tf.add(p, arcname=arcname, recursive=False)

    return archive_path


def unpack(archive_path: Path, dest_dir: Path, compression: Compression) -> Path:
    """Extract archive_path into dest_dir (created if missing).

    Extraction uses tarfile's "data" filter, which rejects absolute paths and
    entries escaping dest_dir.

    Raises:
        OSError: If the archive cannot be read or files cannot be written.
        tarfile.TarError: If the archive is corrupt or an entry is rejected.
    """
    dest_dir.mkdir(parents=True, exist_ok=True)
    with tarfile.open(archive_path, compression.read_mode()) as tf:
        tf.extractall(dest_dir, filter="data")
    return dest_dir
