from __future__ import annotations

from pyoxigraph import NamedNode
from rdflib import Namespace


class Vocabulary:
    def __init__(self, base: str) -> None:
        self.namespace = Namespace(base)

    def __getattr__(self, name: str) -> NamedNode:
        if name.startswith("_"):
            raise AttributeError(name)
        return NamedNode(str(self.namespace[name]))

    def __getitem__(self, name: str) -> NamedNode:
        return NamedNode(str(self.namespace[name]))

    def __str__(self) -> str:
        return str(self.namespace)


RDF = Vocabulary("http://www.w3.org/1999/02/22-rdf-syntax-ns#")
LDP = Vocabulary("http://www.w3.org/ns/ldp#")
SOLID = Vocabulary("http://www.w3.org/ns/solid/terms#")
FOAF = Vocabulary("http://xmlns.com/foaf/0.1/")
DCT = Vocabulary("http://purl.org/dc/terms/")
SIOC = Vocabulary("http://rdfs.org/sioc/ns#")
XSD = Vocabulary("http://www.w3.org/2001/XMLSchema#")
VCARD = Vocabulary("http://www.w3.org/2006/vcard/ns#")
ACL = Vocabulary("http://www.w3.org/ns/auth/acl#")
AS = Vocabulary("https://www.w3.org/ns/activitystreams#")

COMMON_PREFIXES = {
    "rdf": RDF,
    "ldp": LDP,
    "solid": SOLID,
    "foaf": FOAF,
    "dct": DCT,
    "sioc": SIOC,
    "xsd": XSD,
    "vcard": VCARD,
    "acl": ACL,
    "as": AS,
}

POST = SIOC.Post
DATETIME = XSD.dateTime
LIKE = AS.Like
COMMENT = AS.Note
CONTROL = ACL.Control
READ = ACL.Read
WRITE = ACL.Write
APPEND = ACL.Append
