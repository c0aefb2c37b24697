"""High-level API for converting Flowise flows."""

import json
import logging
import os
from pathlib import Path
from typing import Dict, Any, List, Optional, Union

from .analyzer import GraphStats, analyze_graph
from .emitter import EmittedFile, get_emitter
from .fragments import GenerationContext
from .ir import IRGraph
from .ir_builder import IRBuilder
from .orchestrator import ConversionOrchestrator, ConversionResult
from .parser import DomainFlow, FlowParser
from .validator import FlowValidator, ValidationResult

logger = logging.getLogger(__name__)

FlowSource = Union[Dict[str, Any], Path, str, bytes]


class GenerationOutput:
    """Files and diagnostics of one generation run."""

    def __init__(self, graph: IRGraph, result: ConversionResult, files: List[EmittedFile]):
        self.graph = graph
        self.result = result
        self.files = files

    @property
    def success(self) -> bool:
        return self.result.success

    def file(self, path: str) -> Optional[EmittedFile]:
        for emitted in self.files:
            if emitted.path == path:
                return emitted
        return None

    def write_files(self, output_dir: Union[str, Path], overwrite: bool = False) -> List[Path]:
        """
        Write every generated file below `output_dir`.

        Raises:
            FileExistsError: if a file exists and `overwrite` is False
        """
        output_dir = Path(output_dir)
        targets = [(output_dir / f.path, f) for f in self.files]
        if not overwrite:
            existing = [str(path) for path, _ in targets if path.exists()]
            if existing:
                raise FileExistsError(f"Refusing to overwrite: {', '.join(existing)}")
        written = []
        for path, emitted in targets:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(emitted.content, encoding="utf-8")
            written.append(path)
        logger.info("Wrote %d file(s) to %s", len(written), output_dir)
        return written


class CodeGenerator:
    """
    High-level API for generating code from flow exports.
    """

    def __init__(self, registry=None, context: Optional[GenerationContext] = None,
                 parser: Optional[FlowParser] = None):
        """
        Initialize the code generator.

        Args:
            registry: ConverterRegistry; the bundled registry when omitted
            context: Default generation options
            parser: Parser to use for raw input
        """
        if registry is None:
            from flowise2lc.core.registry import build_default_registry
            registry = build_default_registry()
        self.registry = registry
        self.context = context or GenerationContext()
        self.parser = parser or FlowParser()
        self.builder = IRBuilder()
        self.validator = FlowValidator()
        self.orchestrator = ConversionOrchestrator(registry, self.validator)

    def parse(self, flow_def: FlowSource) -> DomainFlow:
        """Parse a flow given as dict, path, JSON text or bytes."""
        if isinstance(flow_def, dict):
            return self.parser.parse_data(flow_def)
        if isinstance(flow_def, Path) or isinstance(flow_def, str) and os.path.exists(flow_def):
            return self.parser.parse_file(flow_def)
        if isinstance(flow_def, (str, bytes)):
            return self.parser.parse(flow_def)
        raise ValueError(f"Unsupported flow definition type: {type(flow_def)}")

    def build_graph(self, flow_def: FlowSource) -> IRGraph:
        return self.builder.build(self.parse(flow_def))

    def validate(self, flow_def: FlowSource) -> ValidationResult:
        return self.validator.validate(self.build_graph(flow_def))

    def analyze(self, flow_def: FlowSource) -> GraphStats:
        return analyze_graph(self.build_graph(flow_def))

    def convert(self, flow_def: FlowSource, context: Optional[GenerationContext] = None) -> ConversionResult:
        return self.orchestrator.convert(self.build_graph(flow_def), context or self.context)

    def generate(self, flow_def: FlowSource, context: Optional[GenerationContext] = None,
                 strict: bool = False) -> GenerationOutput:
        """
        Run the whole pipeline and render files.

        Args:
            flow_def: Flow definition as dict, path, JSON text or bytes
            context: Generation options overriding the default
            strict: Raise on any recorded error instead of emitting partial output

        Returns:
            GenerationOutput; `files` is empty when conversion was aborted
        """
        context = context or self.context
        graph = self.build_graph(flow_def)
        result = self.orchestrator.convert(graph, context)
        if strict:
            result.raise_for_errors()
        files: List[EmittedFile] = []
        if result.success:
            files = get_emitter(context.target_language).emit(result.fragments, result.dependencies,
                                                                graph, context)
        return GenerationOutput(graph, result, files)

    def generate_report(self, output: GenerationOutput) -> str:
        """JSON report of a generation run."""
        report = output.result.to_dict()
        report["flow"] = output.graph.name
        report["files"] = [f.path for f in output.files]
        return json.dumps(report, indent=2)
