"""Built-in rules for common package managers, build systems and engines."""

from __future__ import annotations

from ..detection import Pattern, all_of, any_of
from .base import Remove, Rule


def _remove(*patterns: str) -> tuple[Remove, ...]:
    return tuple(Remove(pattern) for pattern in patterns)


CABAL = Rule(
    id="cabal",
    name="Cabal (Haskell)",
    detection=Pattern("cabal.project"),
    actions=_remove("dist-newstyle"),
)

CARGO = Rule(
    id="cargo",
    name="Cargo",
    detection=Pattern("Cargo.toml"),
    actions=_remove("target"),
)

CMAKE = Rule(
    id="cmake",
    name="CMake",
    detection=Pattern("CMakeLists.txt"),
    actions=_remove("build", "cmake-build-debug", "cmake-build-release"),
)

COMPOSER = Rule(
    id="composer",
    name="Composer (PHP)",
    detection=Pattern("composer.json"),
    actions=_remove("vendor"),
)

DOTNET = Rule(
    id="dotnet",
    name=".NET",
    detection=any_of("*.csproj", "*.fsproj", "*.sln"),
    actions=_remove("bin", "obj"),
)

ELIXIR = Rule(
    id="elixir",
    name="Elixir",
    detection=Pattern("mix.exs"),
    actions=_remove("_build", ".elixir-tools", ".elixir_ls", ".lexical"),
)

GODOT = Rule(
    id="godot",
    name="Godot 4",
    detection=Pattern("project.godot"),
    actions=_remove(".godot"),
)

GRADLE = Rule(
    id="gradle",
    name="Gradle",
    detection=any_of("build.gradle", "build.gradle.kts"),
    actions=_remove("build", ".gradle"),
)

JUPYTER = Rule(
    id="jupyter",
    name="Jupyter",
    detection=Pattern("**/*.ipynb"),
    actions=_remove("**/.ipynb_checkpoints"),
)

MAVEN = Rule(
    id="maven",
    name="Maven",
    detection=Pattern("pom.xml"),
    actions=_remove("target"),
)

NODE = Rule(
    id="node",
    name="Node",
    detection=Pattern("package.json"),
    actions=_remove("node_modules", ".angular"),
)

PIXI = Rule(
    id="pixi",
    name="Pixi",
    detection=Pattern("pixi.toml"),
    actions=_remove(".pixi"),
)

PUB = Rule(
    id="pub",
    name="Dart / Flutter",
    detection=Pattern("pubspec.yaml"),
    actions=_remove(".dart_tool", "build"),
)

PYTHON = Rule(
    id="python",
    name="Python",
    detection=any_of("pyproject.toml", "setup.py", "setup.cfg", "requirements.txt"),
    actions=_remove(
        "**/__pycache__",
        ".mypy_cache",
        ".pytest_cache",
        ".ruff_cache",
        ".tox",
        ".nox",
        "__pypackages__",
    ),
)

SBT = Rule(
    id="sbt",
    name="sbt (Scala)",
    detection=Pattern("build.sbt"),
    actions=_remove("target", "project/target"),
)

STACK = Rule(
    id="stack",
    name="Stack (Haskell)",
    detection=Pattern("stack.yaml"),
    actions=_remove(".stack-work"),
)

SWIFT = Rule(
    id="swift",
    name="Swift Package Manager",
    detection=Pattern("Package.swift"),
    actions=_remove(".build", ".swiftpm"),
)

TURBOREPO = Rule(
    id="turborepo",
    name="Turborepo",
    detection=Pattern("turbo.json"),
    actions=_remove(".turbo"),
)

UNITY = Rule(
    id="unity",
    name="Unity",
    detection=all_of("Assets", "ProjectSettings"),
    actions=_remove("Library", "Temp", "Obj", "Build", "Builds", "Logs", "MemoryCaptures"),
)

UNREAL = Rule(
    id="unreal",
    name="Unreal Engine",
    detection=Pattern("*.uproject"),
    actions=_remove("Binaries", "DerivedDataCache", "Intermediate"),
)

ZIG = Rule(
    id="zig",
    name="Zig",
    detection=Pattern("build.zig"),
    actions=_remove("zig-cache", ".zig-cache", "zig-out"),
)

BUILTIN_RULES: tuple[Rule, ...] = (
    CABAL,
    CARGO,
    CMAKE,
    COMPOSER,
    DOTNET,
    ELIXIR,
    GODOT,
    GRADLE,
    JUPYTER,
    MAVEN,
    NODE,
    PIXI,
    PUB,
    PYTHON,
    SBT,
    STACK,
    SWIFT,
    TURBOREPO,
    UNITY,
    UNREAL,
    ZIG,
)
