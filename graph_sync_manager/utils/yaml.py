"""Contains utility functions for reading and writing the YAML graph store."""

import os
import tempfile
from pathlib import Path
from typing import Any

from ruamel.yaml import YAML

yaml = YAML(typ="safe")


def load_yaml_file(path: Path) -> Any:
    """Loads a YAML file and returns its content."""
    with open(path, encoding="utf-8") as f:
        return yaml.load(f)


def create_yaml_dumper() -> YAML:
    """Creates a YAML object for dumping with block style and literal multiline strings."""
    yaml_dumper = YAML()
    yaml_dumper.default_flow_style = False
    yaml_dumper.explicit_start = True
    yaml_dumper.indent(mapping=2, sequence=4, offset=2)  # type: ignore[attr-defined]
    yaml_dumper.width = 4096

    def represent_str(dumper: Any, data: str) -> Any:
        """Use literal scalar style (|) for multiline strings."""
        if "\n" in data:
            return dumper.represent_scalar("tag:yaml.org,2002:str", data, style="|")
        return dumper.represent_scalar("tag:yaml.org,2002:str", data)

    yaml_dumper.representer.add_representer(str, represent_str)  # type: ignore[attr-defined]

    return yaml_dumper


def dump_yaml_to_file(data: Any, file_path: Path) -> None:
    """Dumps data to a YAML file, replacing the previous file only once the dump succeeded."""
    yaml_dumper = create_yaml_dumper()
    file_path.parent.mkdir(parents=True, exist_ok=True)
    fd, temp_path = tempfile.mkstemp(dir=file_path.parent, prefix=f".{file_path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            yaml_dumper.dump(data, f)  # type: ignore[misc]
        os.replace(temp_path, file_path)
    except BaseException:
        Path(temp_path).unlink(missing_ok=True)
        raise
