"""Compile schema files into descriptor views with grpc_tools' protoc."""

from __future__ import annotations

import logging
import re
import subprocess
import sys
import tempfile
import threading
from collections import deque
from pathlib import Path
from typing import Iterable, List, Optional, Sequence

from google.protobuf import descriptor_pb2, descriptor_pool, message_factory
from google.protobuf.message import DecodeError, Message

from .errors import CompileError
from .resolver import ImportResolver
from .schema import ProtoFile, build_proto_file, declared_json_names

LOGGER = logging.getLogger(__name__)

IMPORT_PATTERN = re.compile(r'^\s*import\s+(?:public\s+|weak\s+)?"([^"]+)"\s*;', re.MULTILINE)
DESCRIPTOR_PROTO = "google/protobuf/descriptor.proto"


def find_imports(source: str) -> List[str]:
    return IMPORT_PATTERN.findall(source)


class ProtoCompiler:
    """Run protoc for one file at a time and wrap the result.

    Imports that are neither local nor bundled with grpc_tools are fetched
    through ``resolver`` before protoc runs.
    """

    def __init__(
        self,
        resolver: Optional[ImportResolver] = None,
        include_paths: Sequence[str] = (),
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self.resolver = resolver
        self.include_paths = list(include_paths)
        self.logger = logger or LOGGER
        self._fetch_lock = threading.Lock()

    def compile(self, path: str) -> ProtoFile:
        source_path = Path(path)
        if not source_path.is_file():
            raise CompileError(f"failed to compile file {path}: no such file")

        self.prefetch_imports(source_path)
        with tempfile.TemporaryDirectory(prefix="protolinter-") as workdir:
            output = Path(workdir) / "descriptor_set.pb"
            self._run_protoc(path, output)
            descriptor_set = self._load_descriptor_set(path, output)

        if not descriptor_set.file:
            raise CompileError(f"failed to compile file {path}: empty descriptor set")
        return self.build_views(descriptor_set, path)

    def compile_all(self, paths: Iterable[str]) -> List[ProtoFile]:
        return [self.compile(path) for path in paths]

    def import_roots(self, path: str) -> List[Path]:
        """Directories protoc searches for imports of ``path``, besides the resolver cache."""

        roots = [Path(".")]
        source_dir = Path(path).resolve().parent
        if not _is_relative_to(source_dir, Path.cwd()):
            roots.append(source_dir)
        roots.extend(Path(include) for include in self.include_paths)
        return roots

    def prefetch_imports(self, source_path: Path) -> None:
        """Materialize the transitive imports the resolver has to fetch.

        Imports found under an import root are read in place and their own
        imports followed.
        """

        if self.resolver is None:
            return
        roots = self.import_roots(str(source_path))
        # Downloads share one cache directory, so fetch one file at a time.
        with self._fetch_lock:
            pending = deque(find_imports(_read_source(source_path)))
            seen = set()
            while pending:
                import_path = pending.popleft()
                if import_path in seen:
                    continue
                seen.add(import_path)
                found = self.resolver.materialize(import_path, roots) or _find_in_roots(import_path, roots)
                if found is not None:
                    pending.extend(find_imports(_read_source(found)))

    def protoc_command(self, path: str, output: Path) -> List[str]:
        command = [sys.executable, "-m", "grpc_tools.protoc"]
        command.extend(f"-I{root}" for root in self.import_roots(path))
        if self.resolver is not None:
            command.append(f"-I{self.resolver.cache_dir}")
        command.extend(
            [
                "--include_imports",
                "--include_source_info",
                f"--descriptor_set_out={output}",
                path,
            ]
        )
        return command

    def _run_protoc(self, path: str, output: Path) -> None:
        command = self.protoc_command(path, output)
        self.logger.debug("Running %s", " ".join(command))
        completed = subprocess.run(command, capture_output=True, text=True, check=False)
        if completed.returncode != 0:
            details = (completed.stderr or completed.stdout).strip()
            raise CompileError(f"failed to compile file {path}: {details}")

    def _load_descriptor_set(self, path: str, output: Path) -> descriptor_pb2.FileDescriptorSet:
        descriptor_set = descriptor_pb2.FileDescriptorSet()
        try:
            descriptor_set.ParseFromString(output.read_bytes())
        except (OSError, DecodeError) as error:
            raise CompileError(f"failed to compile file {path}: {error}") from error
        return descriptor_set

    def build_views(self, descriptor_set: descriptor_pb2.FileDescriptorSet, path: str) -> ProtoFile:
        """Wrap the requested file, the last one in the set, with resolved options."""

        pool = build_pool(descriptor_set)
        json_names = declared_json_names(descriptor_set.file)
        return build_proto_file(descriptor_set.file[-1], path, OptionsLoader(pool), json_names)


def build_pool(descriptor_set: descriptor_pb2.FileDescriptorSet) -> descriptor_pool.DescriptorPool:
    """Load every file of ``descriptor_set`` into a fresh pool.

    Generated classes are created for all files so that extensions declared
    in them are registered on the pool's options messages.
    """

    pool = descriptor_pool.DescriptorPool()
    names = [file_proto.name for file_proto in descriptor_set.file]
    if DESCRIPTOR_PROTO not in names:
        pool.AddSerializedFile(descriptor_pb2.DESCRIPTOR.serialized_pb)
    for file_proto in descriptor_set.file:
        pool.AddSerializedFile(file_proto.SerializeToString())
    message_factory.GetMessageClassesForFiles(names, pool)
    return pool


class OptionsLoader:
    """Re-parse options messages against a pool that knows their extensions."""

    def __init__(self, pool: descriptor_pool.DescriptorPool) -> None:
        self.pool = pool

    def __call__(self, options: Message) -> Message:
        descriptor = self.pool.FindMessageTypeByName(options.DESCRIPTOR.full_name)
        message_class = message_factory.GetMessageClass(descriptor)
        return message_class.FromString(options.SerializeToString())


def _read_source(path: Path) -> str:
    return path.read_text(encoding="utf-8", errors="replace")


def _is_relative_to(path: Path, root: Path) -> bool:
    try:
        path.relative_to(root.resolve())
    except ValueError:
        return False
    return True


def _find_in_roots(import_path: str, roots: Sequence[Path]) -> Optional[Path]:
    for root in roots:
        candidate = root / import_path
        if candidate.is_file():
            return candidate
    return None
