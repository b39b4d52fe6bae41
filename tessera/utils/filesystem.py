# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Atomic file writes for vocabulary artifacts.

A half-written vocab.tsv would load as a smaller, still "valid" vocabulary
and silently shift every ID after the cut, so artifact files are written to
a temp file in the target directory and renamed into place. Rename on the
same filesystem is atomic on POSIX: readers see the old file or the new
one, never a partial one.
"""

import tempfile
from pathlib import Path


def atomic_write(target_path: Path, content: str, encoding: str = "utf-8") -> None:
    """
    Write text content to target_path atomically.

    Raises:
        OSError: If the write or rename fails. The target is left untouched.
    """
    target_path.parent.mkdir(parents=True, exist_ok=True)

    # Same directory as the target so the rename never crosses filesystems.
    temp_file = tempfile.NamedTemporaryFile(
        mode="w",
        encoding=encoding,
        newline="\n",
        dir=str(target_path.parent),
        prefix=".tessera_tmp_",
        suffix=".tmp",
        delete=False,
    )
    temp_path = Path(temp_file.name)

    try:
        temp_file.write(content)
        temp_file.flush()
        temp_file.close()
        temp_path.replace(target_path)
    except BaseException:
        temp_file.close()
        if temp_path.exists():
            temp_path.unlink()
        raise
