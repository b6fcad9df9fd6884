"""
Archiver stage: pack assets, index.html and the binding pair into a zip.

Asset files keep their path relative to the asset root; the entry point and
the binding pair sit at the archive root. The archive is written to a
temporary file beside the destination and renamed into place, so a failed
run never leaves a truncated archive at the destination.
"""

import errno
import fnmatch
import os
import stat
import tempfile
import zipfile
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator, List, Optional, Sequence

from webbundle.errors import ArchiveWriteError, AssetEnumerationError
from webbundle.logging import get_logger
from webbundle.stages.base import BindingPair, Stage

log = get_logger('archiver')

# Zip can't store dates before 1980; a fixed stamp keeps archives reproducible
FIXED_DATE_TIME = (1980, 1, 1, 0, 0, 0)
FILE_MODE = 0o644


@dataclass(frozen=True)
class AssetEntry:
    """A file to archive and the name it is stored under."""
    path: Path
    arcname: str


def _excluded(relpath: str, patterns: Sequence[str]) -> bool:
    name = relpath.rsplit('/', 1)[-1]
    return any(
        fnmatch.fnmatchcase(relpath, pattern) or fnmatch.fnmatchcase(name, pattern)
        for pattern in patterns
    )


def iter_asset_files(
    root: Path,
    follow_symlinks: bool = True,
    include_hidden: bool = True,
    exclude: Sequence[str] = (),
) -> Iterator[AssetEntry]:
    """Walk the asset tree and yield every regular file in sorted order.

    Directories are not yielded. Symlinked directories are never descended.
    Symlinks to regular files are yielded when follow_symlinks is set.
    Broken links and special files are skipped with a warning.

    Raises:
        AssetEnumerationError: If a directory or entry can't be read
    """

    def on_error(error: OSError):
        raise AssetEnumerationError(
            f"Cannot read asset directory {error.filename}: {error.strerror}",
            path=error.filename,
        ) from error

    for dirpath, dirnames, filenames in os.walk(root, onerror=on_error):
        current = Path(dirpath)
        rel_dir = current.relative_to(root)

        kept_dirs = []
        for dirname in sorted(dirnames):
            rel = (rel_dir / dirname).as_posix()
            if not include_hidden and dirname.startswith('.'):
                continue
            if _excluded(rel, exclude):
                log.debug(f"Excluded directory: {rel}")
                continue
            if (current / dirname).is_symlink():
                log.warning(f"Skipping symlinked directory: {rel}")
                continue
            kept_dirs.append(dirname)
        dirnames[:] = kept_dirs

        for filename in sorted(filenames):
            path = current / filename
            rel = (rel_dir / filename).as_posix()
            if not include_hidden and filename.startswith('.'):
                continue
            if _excluded(rel, exclude):
                log.debug(f"Excluded file: {rel}")
                continue

            try:
                st = os.lstat(path)
            except OSError as e:
                raise AssetEnumerationError(f"Cannot stat asset {path}: {e}", path=path) from e

            if stat.S_ISLNK(st.st_mode):
                if not follow_symlinks:
                    log.warning(f"Skipping symlink: {rel}")
                    continue
                try:
                    st = os.stat(path)
                except OSError as e:
                    if e.errno not in (errno.ENOENT, errno.ENOTDIR, errno.ELOOP):
                        raise AssetEnumerationError(
                            f"Cannot resolve symlink {path}: {e}", path=path
                        ) from e
                    log.warning(f"Skipping broken symlink: {rel}")
                    continue

            if not stat.S_ISREG(st.st_mode):
                log.warning(f"Skipping non-regular file: {rel}")
                continue

            yield AssetEntry(path=path, arcname=rel)


def _zip_info(arcname: str) -> zipfile.ZipInfo:
    info = zipfile.ZipInfo(arcname, date_time=FIXED_DATE_TIME)
    info.compress_type = zipfile.ZIP_DEFLATED
    info.create_system = 3
    info.external_attr = (stat.S_IFREG | FILE_MODE) << 16
    return info


def references_script(index_html: Path, script_name: str) -> bool:
    """Check whether the entry-point document mentions the binding script."""
    text = index_html.read_text(encoding='utf-8', errors='replace')
    return script_name in text


class ArchiverStage(Stage):
    """Builds the distribution archive."""

    name = "archive"

    def __init__(self, config, bindings: Optional[BindingPair] = None):
        super().__init__(config)
        self.bindings = bindings or BindingPair.for_config(config)
        self.entries: List[AssetEntry] = []

    @property
    def archive_path(self) -> Path:
        return self.config.archive_path

    def asset_entries(self) -> List[AssetEntry]:
        """Enumerate the asset tree."""
        options = self.config.archive
        root = self.config.assets_dir
        if not root.exists():
            if options.allow_missing_assets:
                log.warning(f"Asset directory {root} not found; archiving without assets")
                return []
            raise AssetEnumerationError(f"Asset directory not found: {root}", path=root)
        if not root.is_dir():
            raise AssetEnumerationError(f"Asset path is not a directory: {root}", path=root)

        archive = self.archive_path.resolve()
        generated = {os.path.abspath(p) for p in (self.bindings.script, self.bindings.module)}
        entries = []
        for entry in iter_asset_files(
            root,
            follow_symlinks=options.follow_symlinks,
            include_hidden=options.include_hidden,
            exclude=options.exclude,
        ):
            if entry.path.resolve() == archive:
                log.debug(f"Skipping the archive itself: {entry.arcname}")
                continue
            if os.path.abspath(entry.path) in generated:
                log.debug(f"Skipping binding output inside the asset tree: {entry.arcname}")
                continue
            entries.append(entry)
        return entries

    def plan(self) -> List[AssetEntry]:
        """Everything the archive will hold, sorted by archive name.

        Raises:
            AssetEnumerationError: If the asset tree can't be read
            ArchiveWriteError: If an asset would shadow a root-level file
        """
        root_entries = [
            AssetEntry(path=self.config.index_html, arcname=self.config.index_html.name),
            AssetEntry(path=self.bindings.script, arcname=self.bindings.script.name),
            AssetEntry(path=self.bindings.module, arcname=self.bindings.module.name),
        ]
        root_names = {e.arcname for e in root_entries}

        assets = self.asset_entries()
        for entry in assets:
            if entry.arcname in root_names:
                raise ArchiveWriteError(
                    f"Asset {entry.path} collides with root-level archive entry {entry.arcname}",
                    path=entry.path,
                )
        return sorted(root_entries + assets, key=lambda e: e.arcname)

    def check_inputs(self) -> None:
        """Fail before writing anything if a required input is missing."""
        archive = self.archive_path
        if archive.exists() and not self.config.archive.overwrite:
            raise ArchiveWriteError(f"Archive already exists: {archive}", path=archive)

        index_html = self.config.index_html
        if not index_html.is_file():
            raise ArchiveWriteError(f"Entry point not found: {index_html}", path=index_html)

        missing = self.bindings.missing()
        if missing:
            names = ", ".join(str(p) for p in missing)
            raise ArchiveWriteError(f"Binding pair incomplete, missing: {names}", path=missing[0])

        script_name = self.bindings.script.name
        try:
            referenced = references_script(index_html, script_name)
        except OSError as e:
            raise ArchiveWriteError(f"Cannot read entry point {index_html}: {e}", path=index_html) from e
        if not referenced:
            message = f"{index_html.name} does not reference {script_name}"
            if self.config.archive.strict_entry_point:
                raise ArchiveWriteError(message, path=index_html)
            log.warning(message)

    def run(self) -> List[Path]:
        self.check_inputs()
        self.entries = self.plan()
        self.write(self.entries)
        asset_count = len(self.entries) - 3
        log.info(f"Wrote {self.archive_path} ({asset_count} assets, {len(self.entries)} entries)")
        return [self.archive_path]

    def write(self, entries: Sequence[AssetEntry]) -> None:
        """Write entries to the archive atomically.

        Raises:
            AssetEnumerationError: If an asset file can't be read
            ArchiveWriteError: If the archive can't be written
        """
        archive = self.archive_path
        compresslevel = self.config.archive.compresslevel
        try:
            archive.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                prefix=f".{archive.name}.", suffix=".partial", dir=archive.parent
            )
            os.close(fd)
        except OSError as e:
            raise ArchiveWriteError(f"Cannot create archive in {archive.parent}: {e}", path=archive) from e

        tmp = Path(tmp_name)
        try:
            with zipfile.ZipFile(tmp, 'w', compression=zipfile.ZIP_DEFLATED) as zf:
                for entry in entries:
                    try:
                        data = entry.path.read_bytes()
                    except OSError as e:
                        raise AssetEnumerationError(
                            f"Cannot read {entry.path}: {e}", path=entry.path
                        ) from e
                    zf.writestr(
                        _zip_info(entry.arcname),
                        data,
                        compress_type=zipfile.ZIP_DEFLATED,
                        compresslevel=compresslevel,
                    )
                    log.debug(f"  Added: {entry.arcname}")
            os.chmod(tmp, FILE_MODE)
            os.replace(tmp, archive)
        except OSError as e:
            raise ArchiveWriteError(f"Failed to write {archive}: {e}", path=archive) from e
        finally:
            if tmp.exists():
                tmp.unlink()
