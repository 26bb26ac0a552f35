"""In-memory graph of placed buildings, their flow links and visual edges.

The store owns three tables: nodes by id, links by id and edges by id. Engine
functions receive the store explicitly and always read live objects from it.
"""

import logging
import uuid
from dataclasses import dataclass, field
from typing import Optional

from buildings import Link, Node, create_node
from catalog import BuildingTemplate, Catalog
from config import DEFAULT_CONFIG, EditorConfig
from errors import NodeNotFound

_LOGGER = logging.getLogger("chaindraft")


@dataclass(eq=False)
class Edge:
    """Arrow drawn from a supplier's output row to a consumer's input row"""

    supplier_id: str
    consumer_id: str
    product: str
    id: str = field(default_factory=lambda: uuid.uuid4().hex)

    def binds(self, node_id: str) -> bool:
        return node_id in (self.supplier_id, self.consumer_id)


class GraphStore:
    """Single source of truth for the node graph"""

    def __init__(self):
        self._nodes: dict[str, Node] = {}
        self._links: dict[str, Link] = {}
        self._edges: dict[str, Edge] = {}

    # ========== Nodes ==========

    def add_node(self, node: Node) -> Node:
        """Insert a node, replacing any node with the same id"""
        self._nodes[node.id] = node
        return node

    def create_node(
        self,
        template: BuildingTemplate,
        x: float = 0.0,
        y: float = 0.0,
        recipe_index: int = 0,
        catalog: Optional[Catalog] = None,
        node_id: Optional[str] = None,
        config: EditorConfig = DEFAULT_CONFIG,
    ) -> Node:
        """Create a node from a template and add it to the store"""
        node = create_node(
            template, recipe_index=recipe_index, catalog=catalog,
            x=x, y=y, node_id=node_id, config=config,
        )
        _LOGGER.debug("Created node %s (%s)", node.id, template.name)
        return self.add_node(node)

    def get_node(self, node_id: str) -> Optional[Node]:
        return self._nodes.get(node_id)

    def require_node(self, node_id: str) -> Node:
        """Get a node or raise NodeNotFound"""
        node = self._nodes.get(node_id)
        if node is None:
            raise NodeNotFound(f"Node '{node_id}' not found")
        return node

    def update_node(self, node_id: str, **props) -> Node:
        """Assign several node attributes in one write.

        Precondition:
            node_id names a stored node
            every key in props is an existing Node attribute

        Postcondition:
            all attributes are assigned before the method returns

        Raises:
            NodeNotFound: if node_id is unknown
            AttributeError: if a key is not a Node attribute
        """
        node = self.require_node(node_id)
        for key in props:
            if not hasattr(node, key):
                raise AttributeError(f"Node has no attribute '{key}'")
        for key, value in props.items():
            setattr(node, key, value)
        return node

    def delete_node(self, node_id: str) -> bool:
        """Remove a node record only; callers dissolve its links first"""
        return self._nodes.pop(node_id, None) is not None

    def list_nodes(self) -> list[Node]:
        return list(self._nodes.values())

    def __contains__(self, node_id: str) -> bool:
        return node_id in self._nodes

    def __len__(self) -> int:
        return len(self._nodes)

    # ========== Links ==========

    def add_link(self, link: Link) -> Link:
        self._links[link.id] = link
        return link

    def get_link(self, link_id: str) -> Optional[Link]:
        return self._links.get(link_id)

    def remove_link(self, link_id: str) -> Optional[Link]:
        return self._links.pop(link_id, None)

    def list_links(self) -> list[Link]:
        return list(self._links.values())

    # ========== Edges ==========

    def create_edge(self, supplier_id: str, consumer_id: str, product: str) -> Edge:
        """Bind an arrow between two nodes for one product"""
        edge = Edge(supplier_id, consumer_id, product)
        self._edges[edge.id] = edge
        return edge

    def delete_edges_between(
        self, supplier_id: str, consumer_id: str, product: Optional[str] = None
    ) -> int:
        """Delete arrows from supplier to consumer, optionally for one product only"""
        doomed = [
            edge.id
            for edge in self._edges.values()
            if edge.supplier_id == supplier_id
            and edge.consumer_id == consumer_id
            and (product is None or edge.product == product)
        ]
        for edge_id in doomed:
            del self._edges[edge_id]
        return len(doomed)

    def delete_edges_bound_to(self, node_id: str) -> int:
        """Delete every arrow starting or ending at node_id"""
        doomed = [edge.id for edge in self._edges.values() if edge.binds(node_id)]
        for edge_id in doomed:
            del self._edges[edge_id]
        return len(doomed)

    def list_edges(self) -> list[Edge]:
        return list(self._edges.values())
