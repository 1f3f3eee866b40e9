from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Type, TypeVar


class TargetArch(str, Enum):
    ANYCPU = "ANYCPU"
    X64 = "X64"
    X86 = "X86"


class OutputType(str, Enum):
    CONSOLE = "CONSOLE"
    WINDOWED = "WINDOWED"


@dataclass(frozen=True)
class ConfigNote:
    code: str
    message: str
    field_name: Optional[str] = None


class ConfigError(ValueError):
    def __init__(self, note: ConfigNote):
        super().__init__(note.message)
        self.note = note


E = TypeVar("E", bound=Enum)


def _coerce_enum(enum_cls: Type[E], value: Any, *, code: str, field_name: str) -> E:
    if isinstance(value, enum_cls):
        return value
    if isinstance(value, str):
        token = value.strip().upper()
        for member in enum_cls:
            if member.value == token:
                return member
    allowed = ", ".join(m.value for m in enum_cls)
    raise ConfigError(ConfigNote(
        code=code,
        message=f"Invalid {field_name} {value!r}; expected one of: {allowed}",
        field_name=field_name,
    ))


def _coerce_bool(value: Any, *, field_name: str) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        t = value.strip().lower()
        if t in ("true", "on", "yes", "1"):
            return True
        if t in ("false", "off", "no", "0", ""):
            return False
    raise ConfigError(ConfigNote(
        code="EXF-CFG-0003",
        message=f"Invalid {field_name} {value!r}; expected a boolean",
        field_name=field_name,
    ))


def _pick(data: Mapping[str, Any], *keys: str, default: Any = None) -> Any:
    for k in keys:
        if k in data:
            return data[k]
    return default


@dataclass(frozen=True)
class ProjectMetadata:
    """Descriptive project fields. Only ``project_name`` reaches the artifact."""

    project_name: str = "MyApp"
    version: str = "1.0.0"
    author: str = ""
    copyright: str = ""
    description: str = ""

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ProjectMetadata":
        return cls(
            project_name=str(_pick(data, "project_name", "projectName", default="MyApp")),
            version=str(_pick(data, "version", default="1.0.0")),
            author=str(_pick(data, "author", default="")),
            copyright=str(_pick(data, "copyright", default="")),
            description=str(_pick(data, "description", default="")),
        )


@dataclass(frozen=True)
class BuildConfig:
    """Compiler-facing build options.

    Plain strings and form-style booleans are coerced on construction, so any
    instance that exists holds valid enum members and real booleans.
    """

    target_architecture: TargetArch = TargetArch.ANYCPU
    output_type: OutputType = OutputType.CONSOLE
    enable_optimization: bool = True
    allow_unsafe: bool = False

    def __post_init__(self) -> None:
        # frozen: go through object.__setattr__
        object.__setattr__(self, "target_architecture", _coerce_enum(
            TargetArch, self.target_architecture,
            code="EXF-CFG-0001", field_name="target_architecture",
        ))
        object.__setattr__(self, "output_type", _coerce_enum(
            OutputType, self.output_type,
            code="EXF-CFG-0002", field_name="output_type",
        ))
        object.__setattr__(self, "enable_optimization",
                           _coerce_bool(self.enable_optimization, field_name="enable_optimization"))
        object.__setattr__(self, "allow_unsafe",
                           _coerce_bool(self.allow_unsafe, field_name="allow_unsafe"))

    @property
    def is_console(self) -> bool:
        return self.output_type is OutputType.CONSOLE

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "BuildConfig":
        return cls(
            target_architecture=_pick(data, "target_architecture", "architecture", default=TargetArch.ANYCPU),
            output_type=_pick(data, "output_type", "outputType", default=OutputType.CONSOLE),
            enable_optimization=_pick(data, "enable_optimization", "enableOptimization", default=True),
            allow_unsafe=_pick(data, "allow_unsafe", "allowUnsafe", default=False),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "architecture": self.target_architecture.value,
            "outputType": self.output_type.value,
            "enableOptimization": self.enable_optimization,
            "allowUnsafe": self.allow_unsafe,
        }


DEFAULT_SOURCE = """using System;
using System.Windows.Forms;

namespace MyApp {
    class Program {
        [STAThread]
        static void Main() {
            Console.WriteLine("Hello from ExeForge!");
            // MessageBox.Show("Hello from ExeForge!");
            Console.ReadLine();
        }
    }
}"""


@dataclass
class BuildContext:
    metadata: ProjectMetadata
    config: BuildConfig
    source_code: str = DEFAULT_SOURCE
    build_logs: List[str] = field(default_factory=list)
