"""Reading and atomic writing of layer files."""

import logging
import os
import tempfile
from pathlib import Path

import tomlkit
from tomlkit.container import OutOfOrderTableProxy
from tomlkit.exceptions import TOMLKitError
from tomlkit.items import AbstractTable

from .exceptions import ConfigParseError
from .exceptions import InvalidVersionSpec
from .exceptions import IOFailure
from .exceptions import WriteConflict
from .models import ConfigLayer
from .models import LayerScope
from .version import VersionSpec
from .version import parse_version_spec

logger = logging.getLogger(__name__)

TOOLS_TABLE = "tools"
NEW_FILE_MODE = 0o644


class LayerStore:
    """Reads and writes individual layer files.

    Layer files are TOML documents holding a ``[tools]`` table of
    ``name = "version"`` (or ``name = ["v1", "v2"]``) entries. Everything
    outside that table is carried through writes unmodified.

    Writes are atomic: content goes to a temporary file in the target
    directory which is then renamed over the layer file. Two concurrent
    writers to the same file are last-writer-wins; a read-modify-write
    touching several keys is not isolated from another writer.

    Args:
        delete_empty: Remove the file when its last tool entry is removed
    """

    def __init__(self, delete_empty: bool = True):
        self.delete_empty = delete_empty

    def exists(self, path: Path) -> bool:
        """Check whether a layer file is present."""
        return path.is_file()

    def read(self, path: Path, scope: LayerScope) -> ConfigLayer:
        """Read a layer file.

        Args:
            path: Layer file path
            scope: Scope the layer is read for

        Returns:
            The layer; empty (``exists=False``) if the file does not exist

        Raises:
            ConfigParseError: If the file is not valid TOML or UTF-8 or the tools table is malformed
            IOFailure: If the file exists but cannot be read
        """
        try:
            text = path.read_text(encoding="utf-8")
        except FileNotFoundError:
            logger.debug(f"No {scope} layer at {path}")
            return ConfigLayer(path=path, scope=scope)
        except UnicodeDecodeError as e:
            raise ConfigParseError(path, f"byte {e.start}", "not valid UTF-8") from e
        except OSError as e:
            raise IOFailure(path, f"cannot read layer file: {e}") from e

        try:
            document = tomlkit.parse(text)
        except TOMLKitError as e:
            line = getattr(e, "line", None)
            col = getattr(e, "col", None)
            hint = f"line {line}, column {col}" if line is not None else "document"
            raise ConfigParseError(path, hint, "invalid TOML") from e

        tools = _decode_tools(path, document)
        logger.debug(f"Read {scope} layer {path} with {len(tools)} tool(s)")
        return ConfigLayer(path=path, scope=scope, tools=tools, document=document, exists=True)

    def write(self, layer: ConfigLayer) -> bool:
        """Write a layer back to disk.

        Existing entries keep their position and formatting, new entries are
        appended and entries missing from ``layer.tools`` are dropped. When
        no tool entries remain, the file is deleted unless it still holds
        unrelated content.

        Args:
            layer: Layer to persist

        Returns:
            True if a file remains on disk afterwards

        Raises:
            IOFailure: If the temporary file cannot be written
            WriteConflict: If the rename over the target fails
        """
        document = layer.document if layer.document is not None else tomlkit.document()

        if not layer.tools and self.delete_empty:
            if TOOLS_TABLE in document:
                del document[TOOLS_TABLE]
            if not document.as_string().strip():
                self._remove(layer.path)
                layer.document = None
                layer.exists = False
                return False
        else:
            _encode_tools(document, layer.tools)

        self._atomic_write(layer.path, document.as_string())
        layer.document = document
        layer.exists = True
        logger.info(f"Wrote {layer.scope} layer {layer.path}")
        return True

    # ===== Private Helpers =====

    def _remove(self, path: Path) -> None:
        try:
            path.unlink()
        except FileNotFoundError:
            return
        except OSError as e:
            raise IOFailure(path, f"cannot remove empty layer file: {e}") from e
        logger.info(f"Removed empty layer file {path}")

    def _atomic_write(self, path: Path, text: str) -> None:
        """Write text to a temporary sibling file, then rename it over path."""
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
        except OSError as e:
            raise IOFailure(path, f"cannot create temporary file: {e}") from e

        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(text)
                f.flush()
                os.fsync(f.fileno())
            os.chmod(tmp_name, _file_mode(path))
        except OSError as e:
            _discard(tmp_name)
            raise IOFailure(path, f"cannot write temporary file: {e}") from e

        try:
            os.replace(tmp_name, path)
        except OSError as e:
            _discard(tmp_name)
            raise WriteConflict(path, f"cannot replace layer file: {e}") from e


def _decode_tools(path: Path, document) -> dict[str, tuple[VersionSpec, ...]]:
    table = document.get(TOOLS_TABLE)
    if table is None:
        return {}
    # Dotted keys or split sections yield an out-of-order proxy rather than a table
    if not isinstance(table, (AbstractTable, OutOfOrderTableProxy)):
        raise ConfigParseError(path, TOOLS_TABLE, "expected a table")

    tools = {}
    for name, value in table.items():
        hint = f"{TOOLS_TABLE}.{name}"
        if isinstance(value, str):
            raw = [value]
        elif isinstance(value, list) and value and all(isinstance(v, str) for v in value):
            raw = list(value)
        else:
            raise ConfigParseError(path, hint, "expected a version string or a non-empty list of version strings")
        try:
            tools[str(name)] = tuple(parse_version_spec(str(v)) for v in raw)
        except InvalidVersionSpec as e:
            raise ConfigParseError(path, hint, str(e)) from e
    return tools


def _encode_tools(document, tools: dict[str, tuple[VersionSpec, ...]]) -> None:
    table = document.get(TOOLS_TABLE)
    if table is None:
        table = tomlkit.table()
        document[TOOLS_TABLE] = table

    for name in [key for key in table.keys() if key not in tools]:
        del table[name]

    for name, specs in tools.items():
        values = [spec.value for spec in specs]
        if name in table and _plain(table[name]) == values:
            continue
        table[name] = values[0] if len(values) == 1 else values


def _plain(value) -> list[str]:
    if isinstance(value, str):
        return [str(value)]
    return [str(v) for v in value]


def _file_mode(path: Path) -> int:
    try:
        return path.stat().st_mode & 0o777
    except OSError:
        return NEW_FILE_MODE


def _discard(name: str) -> None:
    try:
        os.unlink(name)
    except OSError:
        pass
