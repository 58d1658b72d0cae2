from __future__ import annotations

from typing import Iterable, Sequence

from pyoxigraph import NamedNode, Quad

from pixolid.namespaces import ACL, CONTROL, FOAF, RDF, READ, WRITE

OWNER_MODES = (CONTROL, READ, WRITE)


def access_list_url(resource_url: str) -> str:
    return f"{resource_url}.acl"


def create_access_statement(
    group: NamedNode,
    resource: NamedNode,
    agent: NamedNode | None,
    is_folder: bool,
    doc: NamedNode,
    modes: Iterable[NamedNode],
) -> list[Quad]:
    acl = [
        Quad(group, RDF.type, ACL.Authorization, doc),
        Quad(group, ACL.accessTo, resource, doc),
    ]
    if agent is not None:
        acl.append(Quad(group, ACL.agent, agent, doc))
    else:
        acl.append(Quad(group, ACL.agentClass, FOAF.Agent, doc))
    for mode in modes:
        acl.append(Quad(group, ACL.mode, mode, doc))
    if is_folder:
        acl.append(Quad(group, ACL.defaultForNew, resource, doc))
    return acl


def create_access_list(
    web_id: str,
    resource_url: str,
    modes: Sequence[NamedNode],
    is_public: bool,
    allowed_users: Iterable[str] | None,
    is_folder: bool,
) -> list[Quad]:
    resource = NamedNode(resource_url)
    acl_url = access_list_url(resource_url)
    doc = NamedNode(acl_url)
    owner = NamedNode(f"{acl_url}#owner")
    acl = create_access_statement(owner, resource, NamedNode(web_id), is_folder, doc, OWNER_MODES)
    if is_public:
        public_group = NamedNode(f"{acl_url}#public")
        acl.extend(create_access_statement(public_group, resource, None, is_folder, doc, modes))
    elif allowed_users:
        for user_id in allowed_users:
            acl.extend(create_access_statement(doc, resource, NamedNode(user_id), is_folder, doc, modes))
    return acl


def create_folder_access_list(
    web_id: str,
    folder_url: str,
    modes: Sequence[NamedNode],
    is_public: bool,
    allowed_users: Iterable[str] | None = None,
) -> list[Quad]:
    return create_access_list(web_id, folder_url, modes, is_public, allowed_users, True)


def create_file_access_list(
    web_id: str,
    file_url: str,
    modes: Sequence[NamedNode],
    is_public: bool,
    allowed_users: Iterable[str] | None = None,
) -> list[Quad]:
    return create_access_list(web_id, file_url, modes, is_public, allowed_users, False)
