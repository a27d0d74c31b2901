"""Data models for fetched resources, declaration trees and package indexes.

Declaration nodes mirror the JSON emitted by the documentation analyzer:
camelCase on the wire, snake_case in Python. Fields the core does not
inspect are kept as extras so a node round-trips unchanged.
"""

from typing import Annotated, Any, Literal

from pydantic import (
    BaseModel,
    ConfigDict,
    Discriminator,
    Field,
    Tag,
    TypeAdapter,
    model_validator,
)
from pydantic.alias_generators import to_camel

# ---------------------------------------------------------------------------
# Fetched resources
# ---------------------------------------------------------------------------


class Resource(BaseModel):
    """A fetched module, as handed to the analyzer's loader callback."""

    model_config = ConfigDict(frozen=True)

    locator: str  # canonical, post-redirect
    headers: dict[str, str] = {}
    content: str
    kind: Literal["module"] = "module"
    size_bytes: int = 0

    @model_validator(mode="before")
    @classmethod
    def _measure(cls, data: Any) -> Any:
        if isinstance(data, dict) and "size_bytes" not in data:
            content = data.get("content") or ""
            data = {**data, "size_bytes": len(content.encode("utf-8"))}
        return data


# ---------------------------------------------------------------------------
# Declaration nodes
# ---------------------------------------------------------------------------


class _AnalyzerModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="allow",
    )


class _BaseNode(_AnalyzerModel):
    name: str = ""
    location: dict[str, Any] | None = None
    declaration_kind: str | None = None
    js_doc: dict[str, Any] | None = None

    def model_post_init(self, __context: Any) -> None:
        # The discriminator must survive exclude_unset dumps.
        self.__pydantic_fields_set__.add("kind")


class ModuleDocNode(_BaseNode):
    kind: Literal["moduleDoc"] = "moduleDoc"


class FunctionNode(_BaseNode):
    kind: Literal["function"] = "function"


class VariableNode(_BaseNode):
    kind: Literal["variable"] = "variable"


class EnumNode(_BaseNode):
    kind: Literal["enum"] = "enum"


class ClassNode(_BaseNode):
    kind: Literal["class"] = "class"


class TypeAliasNode(_BaseNode):
    kind: Literal["typeAlias"] = "typeAlias"


class ImportNode(_BaseNode):
    kind: Literal["import"] = "import"


class NamespaceDef(_AnalyzerModel):
    elements: list["DeclarationNode"] = []


class NamespaceNode(_BaseNode):
    kind: Literal["namespace"] = "namespace"
    namespace_def: NamespaceDef = Field(default_factory=NamespaceDef)


class InterfaceDef(_AnalyzerModel):
    call_signatures: list[Any] = []
    index_signatures: list[Any] = []
    methods: list[Any] = []
    properties: list[Any] = []


class InterfaceNode(_BaseNode):
    kind: Literal["interface"] = "interface"
    interface_def: InterfaceDef = Field(default_factory=InterfaceDef)


class OtherNode(_BaseNode):
    """A node of a kind the core has no model for; kept as-is."""

    kind: str


_KNOWN_KINDS = frozenset(
    {
        "moduleDoc",
        "namespace",
        "interface",
        "class",
        "function",
        "variable",
        "enum",
        "typeAlias",
        "import",
    }
)


def _node_tag(value: Any) -> str:
    if isinstance(value, dict):
        kind = value.get("kind")
    else:
        kind = getattr(value, "kind", None)
    return kind if isinstance(kind, str) and kind in _KNOWN_KINDS else "other"


DeclarationNode = Annotated[
    Annotated[ModuleDocNode, Tag("moduleDoc")]
    | Annotated[NamespaceNode, Tag("namespace")]
    | Annotated[InterfaceNode, Tag("interface")]
    | Annotated[ClassNode, Tag("class")]
    | Annotated[FunctionNode, Tag("function")]
    | Annotated[VariableNode, Tag("variable")]
    | Annotated[EnumNode, Tag("enum")]
    | Annotated[TypeAliasNode, Tag("typeAlias")]
    | Annotated[ImportNode, Tag("import")]
    | Annotated[OtherNode, Tag("other")],
    Discriminator(_node_tag),
]

NamespaceDef.model_rebuild()
NamespaceNode.model_rebuild()

_NODE_LIST = TypeAdapter(list[DeclarationNode])


def parse_nodes(data: Any) -> list[DeclarationNode]:
    """Validate analyzer output (dicts or nodes) into declaration nodes."""
    return _NODE_LIST.validate_python(data)


def dump_nodes(nodes: list[DeclarationNode]) -> list[dict[str, Any]]:
    """Serialize declaration nodes back to analyzer-shaped JSON data."""
    return _NODE_LIST.dump_python(
        nodes, mode="json", by_alias=True, exclude_unset=True
    )


# ---------------------------------------------------------------------------
# Package registry
# ---------------------------------------------------------------------------


class PackageListing(BaseModel):
    path: str
    size: int = 0
    type: Literal["file", "dir"]


class UploadOptions(BaseModel):
    type: str = ""
    repository: str = ""
    ref: str = ""


class PackageMeta(BaseModel):
    """meta.json of one published package version."""

    uploaded_at: str = ""
    directory_listing: list[PackageListing] = []
    upload_options: UploadOptions = UploadOptions()


class PackageVersions(BaseModel):
    latest: str
    versions: list[str] = []


class PackageInfo(BaseModel):
    name: str = ""
    description: str = ""
    star_count: int = 0


# ---------------------------------------------------------------------------
# Package index
# ---------------------------------------------------------------------------


class IndexStructure(BaseModel):
    """Index of a package release.

    ``structure`` maps a directory to the modules that summarize it and
    ``entries`` maps each of those modules to its declarations. Both keep
    insertion order, which is the display order of the index groups.
    """

    structure: dict[str, list[str]] = {}
    entries: dict[str, list[DeclarationNode]] = {}

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True, exclude_unset=True)

    @classmethod
    def from_json(cls, data: str | bytes) -> "IndexStructure":
        return cls.model_validate_json(data)
