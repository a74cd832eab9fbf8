import json
import logging
import subprocess
from dataclasses import dataclass, field
from typing import List, Optional

from gomodgraph.errors import ModFileParseError

GO_BINARY = "go"
PARSE_TIMEOUT = 10


@dataclass
class Requirement:
    path: str
    version: str
    indirect: bool = False


@dataclass
class ModFile:
    # None if the file has no module directive
    module_path: Optional[str]
    go_version: Optional[str] = None
    requires: List[Requirement] = field(default_factory=list)


@dataclass
class Module:
    """A parsed go.mod together with the latest release tag of its project."""
    mod_file: ModFile
    version: str = ""
    # Where the mod file was read from, used for logging only
    source: str = ""

    @property
    def module_path(self) -> Optional[str]:
        return self.mod_file.module_path

    @property
    def go_version(self) -> Optional[str]:
        return self.mod_file.go_version

    @property
    def requires(self) -> List[Requirement]:
        return self.mod_file.requires


def parse_mod_file(path: str) -> ModFile:
    """
    Parses a go.mod file using the Go toolchain (`go mod edit -json`).
    The file name does not matter, so cached files can be parsed in place.
    """
    try:
        raw = subprocess.check_output(
            [GO_BINARY, "mod", "edit", "-json", path],
            text=True,
            timeout=PARSE_TIMEOUT,
            stderr=subprocess.PIPE
        )
    except FileNotFoundError as e:
        raise ModFileParseError(f"Go toolchain not found: {e}") from e
    except subprocess.CalledProcessError as e:
        raise ModFileParseError(f"go mod edit failed for {path}: {(e.stderr or '').strip()}") from e
    except subprocess.TimeoutExpired as e:
        raise ModFileParseError(f"go mod edit timed out for {path}") from e

    try:
        data = json.loads(raw)
    except json.JSONDecodeError as e:
        raise ModFileParseError(f"Invalid JSON from go mod edit for {path}: {e}") from e

    return mod_file_from_json(data)


def mod_file_from_json(data: dict) -> ModFile:
    module = data.get("Module") or {}
    module_path = module.get("Path") or None

    requires = []
    for req in data.get("Require") or []:
        if not req.get("Path"):
            continue
        requires.append(Requirement(
            path=req["Path"],
            version=req.get("Version", ""),
            indirect=bool(req.get("Indirect", False)),
        ))

    logging.debug(f"Parsed module {module_path!r} with {len(requires)} requirements")

    return ModFile(
        module_path=module_path,
        go_version=data.get("Go") or None,
        requires=requires,
    )
