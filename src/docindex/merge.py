"""Coalesce repeated namespace and interface declarations.

TypeScript lets a namespace or an interface be declared several times;
the analyzer reports every declaration separately. Documentation shows
one node per symbol, so later declarations are folded into the first.

Only nodes of the same kind merge. Other kinds sharing a name (function
overloads, a class and an interface of the same name) stay separate.
"""

from docindex.models import DeclarationNode, InterfaceNode, NamespaceNode


def _copy_namespace(node: NamespaceNode) -> NamespaceNode:
    namespace_def = node.namespace_def.model_copy(
        update={"elements": list(node.namespace_def.elements)}
    )
    return node.model_copy(update={"namespace_def": namespace_def})


def _copy_interface(node: InterfaceNode) -> InterfaceNode:
    d = node.interface_def
    interface_def = d.model_copy(
        update={
            "call_signatures": list(d.call_signatures),
            "index_signatures": list(d.index_signatures),
            "methods": list(d.methods),
            "properties": list(d.properties),
        }
    )
    return node.model_copy(update={"interface_def": interface_def})


def merge_entries(nodes: list[DeclarationNode]) -> list[DeclarationNode]:
    """Merge declarations in one pass, keeping first-occurrence order.

    The input nodes are not modified; merged nodes are copies.
    """
    merged: list[DeclarationNode] = []
    namespaces: dict[str, NamespaceNode] = {}
    interfaces: dict[str, InterfaceNode] = {}

    for node in nodes:
        match node:
            case NamespaceNode():
                kept = namespaces.get(node.name)
                if kept is None:
                    kept = _copy_namespace(node)
                    namespaces[node.name] = kept
                    merged.append(kept)
                    continue
                kept.namespace_def.elements.extend(node.namespace_def.elements)
                if not kept.js_doc and node.js_doc:
                    kept.js_doc = node.js_doc

            case InterfaceNode():
                kept = interfaces.get(node.name)
                if kept is None:
                    kept = _copy_interface(node)
                    interfaces[node.name] = kept
                    merged.append(kept)
                    continue
                src, dst = node.interface_def, kept.interface_def
                dst.call_signatures.extend(src.call_signatures)
                dst.index_signatures.extend(src.index_signatures)
                dst.methods.extend(src.methods)
                dst.properties.extend(src.properties)
                if not kept.js_doc and node.js_doc:
                    kept.js_doc = node.js_doc

            case _:
                merged.append(node)

    return merged
