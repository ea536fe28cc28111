"""워크플로 문서 모델(Typed workflow document model).

CI workflow files are untyped YAML. They are converted once into a small
mapping/sequence/scalar node tree and every rule reads that tree instead
of poking at raw dicts and lists.
"""
from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Optional, Set, Tuple, Union

import yaml


@dataclass(frozen=True)
class ScalarNode:
    value: Any

    def to_python(self) -> Any:
        return self.value

    def text(self) -> str:
        return "" if self.value is None else str(self.value)


@dataclass(frozen=True)
class SequenceNode:
    items: Tuple["Node", ...] = ()

    def to_python(self) -> List[Any]:
        return [item.to_python() for item in self.items]

    def __iter__(self) -> Iterator["Node"]:
        return iter(self.items)


@dataclass(frozen=True)
class MappingNode:
    entries: Dict[str, "Node"] = field(default_factory=dict)

    def get(self, key: str) -> Optional["Node"]:
        return self.entries.get(key)

    def items(self) -> Iterator[Tuple[str, "Node"]]:
        return iter(self.entries.items())

    def keys(self) -> List[str]:
        return list(self.entries)

    def to_python(self) -> Dict[str, Any]:
        return {key: value.to_python() for key, value in self.entries.items()}


Node = Union[ScalarNode, SequenceNode, MappingNode]


class WorkflowLoader(yaml.SafeLoader):
    """YAML 로더(SafeLoader that keeps ``on``/``yes``/``no`` as strings).

    YAML 1.1 reads a bare ``on:`` key as boolean ``True``; workflow files
    rely on it being the trigger block.
    """


WorkflowLoader.yaml_implicit_resolvers = {
    first: [(tag, regexp) for tag, regexp in resolvers if tag != "tag:yaml.org,2002:bool"]
    for first, resolvers in yaml.SafeLoader.yaml_implicit_resolvers.items()
}
WorkflowLoader.add_implicit_resolver(
    "tag:yaml.org,2002:bool",
    re.compile(r"^(?:true|True|TRUE|false|False|FALSE)$"),
    list("tTfF"),
)


# Alias chains can expand a short file into an exponentially large tree
MAX_DOCUMENT_NODES = 10000


class WorkflowDocumentError(ValueError):
    """워크플로 구조 오류(Valid YAML that cannot become a finite node tree)."""


def to_node(value: Any, max_nodes: int = MAX_DOCUMENT_NODES) -> Node:
    """파이썬 값을 노드로 변환(Convert parsed YAML into a node tree).

    Raises:
        WorkflowDocumentError: a container holds itself through an alias, or
            the expanded tree exceeds ``max_nodes``
    """

    active: Set[int] = set()
    remaining = max_nodes

    def convert(item: Any) -> Node:
        nonlocal remaining
        remaining -= 1
        if remaining < 0:
            raise WorkflowDocumentError(f"document expands past {max_nodes} nodes")
        if not isinstance(item, (dict, list, tuple)):
            return ScalarNode(item)
        if id(item) in active:
            raise WorkflowDocumentError("recursive alias in document")
        active.add(id(item))
        try:
            if isinstance(item, dict):
                return MappingNode({str(key): convert(child) for key, child in item.items()})
            return SequenceNode(tuple(convert(child) for child in item))
        finally:
            active.discard(id(item))

    return convert(value)


def load_workflow(text: str) -> MappingNode:
    """워크플로 파싱(Parse workflow YAML; non-mapping documents become empty).

    Raises:
        yaml.YAMLError: if the text is not valid YAML
        WorkflowDocumentError: if aliases make the document cyclic or too large
    """

    node = to_node(yaml.load(text, Loader=WorkflowLoader))
    return node if isinstance(node, MappingNode) else MappingNode()


class NodeVisitor:
    """재귀 하강 방문자(Recursive-descent visitor over a node tree)."""

    def visit(self, node: Optional[Node]) -> None:
        if isinstance(node, MappingNode):
            self.visit_mapping(node)
        elif isinstance(node, SequenceNode):
            self.visit_sequence(node)
        elif isinstance(node, ScalarNode):
            self.visit_scalar(node)

    def visit_mapping(self, node: MappingNode) -> None:
        for _, child in node.items():
            self.visit(child)

    def visit_sequence(self, node: SequenceNode) -> None:
        for child in node:
            self.visit(child)

    def visit_scalar(self, node: ScalarNode) -> None:
        pass


class UsesCollector(NodeVisitor):
    """``uses`` 참조 수집기(Collects every ``uses:`` string in a subtree)."""

    def __init__(self) -> None:
        self.uses: List[str] = []

    def visit_mapping(self, node: MappingNode) -> None:
        uses = node.get("uses")
        if isinstance(uses, ScalarNode) and isinstance(uses.value, str):
            self.uses.append(uses.value)
        super().visit_mapping(node)


def collect_uses(node: Optional[Node]) -> List[str]:
    collector = UsesCollector()
    collector.visit(node)
    return collector.uses


def scalar_texts(node: Optional[Node]) -> List[str]:
    """스칼라 문자열 목록(Flatten a scalar or a sequence of scalars to strings)."""

    if isinstance(node, ScalarNode):
        return [node.text()] if node.value is not None else []
    if isinstance(node, SequenceNode):
        return [item.text() for item in node if isinstance(item, ScalarNode)]
    return []
