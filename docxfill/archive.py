import logging
import os
import shutil
import zipfile

from .errors import ArchiveError

logger = logging.getLogger(__name__)

# top-level names starting with this are packaging-tool metadata (e.g. __MACOSX)
SKIP_PREFIX = "__"


def _target_path(dest: str, name: str) -> str:
    root = os.path.abspath(dest)
    path = os.path.abspath(os.path.join(root, name))
    if path != root and not path.startswith(root + os.sep):
        raise ArchiveError(f"entry escapes destination: {name}", path=name)
    return path


def unzip_docx(src: str, dest: str) -> None:
    """Extract every entry of the package under dest, keeping its directory layout."""
    try:
        zin = zipfile.ZipFile(src, "r")
    except (OSError, zipfile.BadZipFile) as exc:
        raise ArchiveError(f"cannot open package {src}: {exc}", path=src) from exc

    with zin:
        for info in zin.infolist():
            path = _target_path(dest, info.filename)
            try:
                if info.is_dir():
                    os.makedirs(path, exist_ok=True)
                    continue
                os.makedirs(os.path.dirname(path), exist_ok=True)
                with zin.open(info) as rc, open(path, "wb") as out:
                    shutil.copyfileobj(rc, out)
            except (OSError, zipfile.BadZipFile) as exc:
                raise ArchiveError(f"cannot extract {info.filename} from {src}: {exc}", path=src) from exc

    logger.debug("Extracted %s -> %s", src, dest)


def _walk(source: str):
    for root, dirs, files in os.walk(source):
        dirs.sort()
        for name in dirs:
            yield os.path.join(root, name), True
        for name in sorted(files):
            yield os.path.join(root, name), False


def zip_docx(source: str, target: str) -> None:
    """Pack a working directory back into a package.

    Directories become zero-length "name/" entries, files are deflated.
    """
    parent = os.path.dirname(os.path.abspath(target))
    partial = target + ".part"
    try:
        os.makedirs(parent, exist_ok=True)
        with zipfile.ZipFile(partial, "w", zipfile.ZIP_DEFLATED) as zout:
            for path, is_dir in _walk(source):
                rel = os.path.relpath(path, source)
                if rel == "." or rel.startswith(SKIP_PREFIX):
                    continue
                arcname = rel.replace(os.sep, "/")
                if is_dir:
                    info = zipfile.ZipInfo(arcname + "/")
                    info.external_attr = (0o40755 << 16) | 0x10
                    zout.writestr(info, b"")
                else:
                    zout.write(path, arcname)
        os.replace(partial, target)
    except OSError as exc:
        if os.path.exists(partial):
            os.remove(partial)
        raise ArchiveError(f"cannot write package {target}: {exc}", path=target) from exc

    logger.debug("Packed %s -> %s", source, target)
