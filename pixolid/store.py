from __future__ import annotations

from typing import Any, Iterable
from urllib.parse import urldefrag

from pyoxigraph import BlankNode, Literal, NamedNode, Quad, Store
from rdflib import BNode, Graph, Literal as RdfLiteral, URIRef

from pixolid.namespaces import COMMON_PREFIXES


def document(uri: str) -> str:
    return urldefrag(uri).url


def _term_to_rdflib(term: Any) -> Any:
    cls_name = term.__class__.__name__
    if cls_name == "NamedNode":
        return URIRef(term.value)
    if cls_name == "BlankNode":
        return BNode(term.value)
    if cls_name == "Literal":
        language = getattr(term, "language", None)
        datatype = getattr(term, "datatype", None)
        dt_value = getattr(datatype, "value", None) if datatype else None
        if language:
            return RdfLiteral(term.value, lang=language)
        if dt_value:
            return RdfLiteral(term.value, datatype=URIRef(dt_value), normalize=False)
        return RdfLiteral(term.value)
    return URIRef(str(term).strip("<>"))


def _term_to_oxigraph(term: Any) -> Any:
    if isinstance(term, URIRef):
        return NamedNode(str(term))
    if isinstance(term, BNode):
        return BlankNode(str(term))
    if isinstance(term, RdfLiteral):
        if term.language:
            return Literal(str(term), language=term.language)
        if term.datatype:
            return Literal(str(term), datatype=NamedNode(str(term.datatype)))
        return Literal(str(term))
    raise TypeError(f"unsupported term {term!r}")


def _rdflib_graph(quads: Iterable[Quad]) -> Graph:
    g = Graph()
    for prefix, vocabulary in COMMON_PREFIXES.items():
        g.bind(prefix, URIRef(str(vocabulary)), override=True)
    for quad in quads:
        g.add((_term_to_rdflib(quad.subject), _term_to_rdflib(quad.predicate), _term_to_rdflib(quad.object)))
    return g


def to_turtle(quads: Iterable[Quad]) -> str:
    return _rdflib_graph(quads).serialize(format="turtle")


def to_ntriples(quads: Iterable[Quad]) -> str:
    lines = []
    for quad in quads:
        s = _term_to_rdflib(quad.subject).n3()
        p = _term_to_rdflib(quad.predicate).n3()
        o = _term_to_rdflib(quad.object).n3()
        lines.append(f"{s} {p} {o} .")
    return "\n".join(lines)


def to_ordered_turtle(quads: Iterable[Quad]) -> str:
    # One statement per line, in the order given.
    text = to_ntriples(quads)
    return f"{text}\n" if text else ""


def parse_turtle(text: str, doc: str) -> list[Quad]:
    g = Graph()
    g.parse(data=text, format="turtle", publicID=doc)
    graph_node = NamedNode(doc)
    return [
        Quad(_term_to_oxigraph(s), _term_to_oxigraph(p), _term_to_oxigraph(o), graph_node)
        for s, p, o in g
    ]


def sparql_update(deletions: Iterable[Quad], insertions: Iterable[Quad]) -> str:
    parts = []
    deleted = to_ntriples(deletions)
    inserted = to_ntriples(insertions)
    if deleted:
        parts.append(f"DELETE DATA {{ {deleted} }}")
    if inserted:
        parts.append(f"INSERT DATA {{ {inserted} }}")
    return " ;\n".join(parts) + "\n"


class GraphStore:
    def __init__(self, store: Store | None = None) -> None:
        self._store = store if store is not None else Store()

    def __len__(self) -> int:
        return len(self._store)

    def add(self, quad: Quad) -> None:
        self._store.add(quad)

    def add_all(self, quads: Iterable[Quad]) -> None:
        for quad in quads:
            self._store.add(quad)

    def remove_all(self, quads: Iterable[Quad]) -> None:
        for quad in list(quads):
            self._store.remove(quad)

    def apply_diff(self, deletions: Iterable[Quad], insertions: Iterable[Quad]) -> None:
        # Must not suspend between the two halves.
        self.remove_all(deletions)
        self.add_all(insertions)

    def match(self, s: Any = None, p: Any = None, o: Any = None, g: Any = None) -> list[Quad]:
        graph_name = NamedNode(g) if isinstance(g, str) else g
        return list(self._store.quads_for_pattern(s, p, o, graph_name))

    def holds(self, s: Any = None, p: Any = None, o: Any = None, g: Any = None) -> bool:
        graph_name = NamedNode(g) if isinstance(g, str) else g
        for _ in self._store.quads_for_pattern(s, p, o, graph_name):
            return True
        return False

    def each(self, s: Any = None, p: Any = None, o: Any = None, g: Any = None) -> list[Any]:
        return [self._wildcard_term(quad, s, p, o) for quad in self.match(s, p, o, g)]

    def any(self, s: Any = None, p: Any = None, o: Any = None, g: Any = None) -> Any | None:
        graph_name = NamedNode(g) if isinstance(g, str) else g
        for quad in self._store.quads_for_pattern(s, p, o, graph_name):
            return self._wildcard_term(quad, s, p, o)
        return None

    @staticmethod
    def _wildcard_term(quad: Quad, s: Any, p: Any, o: Any) -> Any:
        if s is None:
            return quad.subject
        if p is None:
            return quad.predicate
        if o is None:
            return quad.object
        return quad.graph_name

    def parse(self, text: str, doc: str) -> list[Quad]:
        quads = parse_turtle(text, doc)
        self.add_all(quads)
        return quads

    def replace_document(self, doc: str, quads: list[Quad]) -> None:
        self.apply_diff(self.match(g=NamedNode(doc)), quads)

    def remove_document(self, doc: str) -> int:
        quads = self.match(g=NamedNode(doc))
        self.remove_all(quads)
        return len(quads)
