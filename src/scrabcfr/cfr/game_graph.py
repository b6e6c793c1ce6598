"""Flat (array-based) game graph for vectorized CFR passes.

The reachable states below a root are expanded once. States are hashable
values, so transpositions (the same position reached by different move
orders) merge into a single node and the tree becomes a DAG.

Layout:
- Nodes are the non-terminal states, numbered so that every parent comes
  before its children; the root is node 0
- Node depth is the longest path from the root, so all parents of a node
  lie in strictly earlier layers
- Nodes are sorted by depth, and edges by parent node, so each layer owns a
  contiguous slice of nodes and a contiguous slice of edges
- An edge to a terminal state has child -1 and carries the terminal utilities
- Information sets own contiguous slot ranges (one slot per action), and
  every edge points at the slot of its action
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Hashable

import numpy as np
import numpy.typing as npt

from scrabcfr.cfr.store import InconsistentInformationSetError
from scrabcfr.games.base import Game, GameError

logger = logging.getLogger(__name__)


@dataclass
class GraphLayer:
    """Nodes and edges at one depth.

    Attributes:
        node_start: First node of the layer
        node_stop: One past the last node of the layer
        edge_start: First edge leaving the layer
        edge_stop: One past the last edge leaving the layer
        inner_edges: Edges of the layer that lead to non-terminal nodes
    """

    node_start: int
    node_stop: int
    edge_start: int
    edge_stop: int
    inner_edges: npt.NDArray[np.int64]


@dataclass
class GameGraph:
    """Transposition-merged game graph below a root state."""

    root_state: Any
    num_players: int

    # Node arrays
    node_player: npt.NDArray[np.int64]  # acting player
    node_infoset: npt.NDArray[np.int64]  # information set index
    edge_offsets: npt.NDArray[np.int64]  # [num_nodes + 1], edges of node n in [offsets[n], offsets[n+1])

    # Edge arrays
    edge_parent: npt.NDArray[np.int64]
    edge_child: npt.NDArray[np.int64]  # -1 for terminal children
    edge_slot: npt.NDArray[np.int64]  # information set slot of the edge's action
    edge_player: npt.NDArray[np.int64]  # acting player at the parent
    edge_utility: npt.NDArray[np.float64]  # [num_edges, num_players], terminal edges only

    # Information sets
    infoset_keys: list[str]
    infoset_actions: list[tuple[Hashable, ...]]
    infoset_player: npt.NDArray[np.int64]
    slot_offsets: npt.NDArray[np.int64]  # [num_infosets + 1]

    layers: list[GraphLayer]

    @property
    def num_nodes(self) -> int:
        return len(self.node_player)

    @property
    def num_edges(self) -> int:
        return len(self.edge_parent)

    @property
    def num_infosets(self) -> int:
        return len(self.infoset_keys)

    @property
    def num_slots(self) -> int:
        return int(self.slot_offsets[-1])

    @property
    def slot_player(self) -> npt.NDArray[np.int64]:
        """Acting player of every information set slot."""
        return np.repeat(self.infoset_player, np.diff(self.slot_offsets))


def build_game_graph(game: Game, root: Any = None) -> GameGraph:
    """Expand every state reachable from root into a GameGraph.

    Args:
        game: Game rules
        root: Non-terminal root state (the initial state by default)

    Returns:
        The game graph

    Raises:
        ValueError: If root is terminal
        GameError: If a non-terminal state has no legal actions
        InconsistentInformationSetError: If one information set key is seen
            with different actions or acting players
    """
    if root is None:
        root = game.initial_state()
    if game.is_terminal(root):
        raise ValueError("Cannot build a game graph from a terminal state")

    num_players = game.num_players
    index: dict[Any, int] = {}
    # Per discovered node: (player, key, actions, [(child id or -1, utilities or None)])
    records: list[Any] = []
    post_order: list[int] = []

    def expand(state: Any) -> int:
        node_id = index.get(state)
        if node_id is not None:
            return node_id
        node_id = len(records)
        index[state] = node_id
        records.append(None)

        player = game.acting_player(state)
        actions = tuple(game.legal_actions(state))
        if not actions:
            raise GameError(f"Non-terminal state has no legal actions:\n{state}")

        children = []
        for action in actions:
            child = game.apply(state, action)
            if game.is_terminal(child):
                children.append((-1, tuple(game.utility(child, p) for p in range(num_players))))
            else:
                children.append((expand(child), None))
        records[node_id] = (player, game.information_set_key(state, player), actions, children)
        post_order.append(node_id)
        return node_id

    expand(root)
    num_nodes = len(records)

    # Longest-path depth, relaxed in topological (reverse post-) order
    depth = [0] * num_nodes
    for node in reversed(post_order):
        for child, _ in records[node][3]:
            if child >= 0 and depth[child] < depth[node] + 1:
                depth[child] = depth[node] + 1
    order = sorted(range(num_nodes), key=lambda n: (depth[n], n))
    new_id = np.empty(num_nodes, dtype=np.int64)
    new_id[order] = np.arange(num_nodes, dtype=np.int64)

    infoset_index: dict[str, int] = {}
    infoset_keys: list[str] = []
    infoset_actions: list[tuple[Hashable, ...]] = []
    infoset_player_list: list[int] = []
    slot_starts: list[int] = []
    num_slots = 0

    node_player = np.empty(num_nodes, dtype=np.int64)
    node_infoset = np.empty(num_nodes, dtype=np.int64)
    edge_offsets = np.zeros(num_nodes + 1, dtype=np.int64)
    edge_parent: list[int] = []
    edge_child: list[int] = []
    edge_slot: list[int] = []
    edge_utility: list[tuple[float, ...]] = []
    no_utility = (0.0,) * num_players

    for nid, old in enumerate(order):
        player, key, actions, children = records[old]
        iid = infoset_index.get(key)
        if iid is None:
            iid = len(infoset_keys)
            infoset_index[key] = iid
            infoset_keys.append(key)
            infoset_actions.append(actions)
            infoset_player_list.append(player)
            slot_starts.append(num_slots)
            num_slots += len(actions)
        elif infoset_actions[iid] != actions or infoset_player_list[iid] != player:
            raise InconsistentInformationSetError(
                f"Information set {key!r} is shared by states with different actions or players"
            )

        node_player[nid] = player
        node_infoset[nid] = iid
        edge_offsets[nid] = len(edge_parent)
        for i, (child, utilities) in enumerate(children):
            edge_parent.append(nid)
            edge_child.append(int(new_id[child]) if child >= 0 else -1)
            edge_slot.append(slot_starts[iid] + i)
            edge_utility.append(utilities if utilities is not None else no_utility)
    edge_offsets[num_nodes] = len(edge_parent)

    edge_parent_arr = np.asarray(edge_parent, dtype=np.int64)
    edge_child_arr = np.asarray(edge_child, dtype=np.int64)

    layers = []
    sorted_depth = np.asarray([depth[old] for old in order], dtype=np.int64)
    boundaries = np.flatnonzero(np.diff(sorted_depth)) + 1
    node_starts = np.concatenate([[0], boundaries])
    node_stops = np.concatenate([boundaries, [num_nodes]])
    for node_start, node_stop in zip(node_starts.tolist(), node_stops.tolist()):
        edge_start = int(edge_offsets[node_start])
        edge_stop = int(edge_offsets[node_stop])
        inner = np.flatnonzero(edge_child_arr[edge_start:edge_stop] >= 0) + edge_start
        layers.append(GraphLayer(node_start, node_stop, edge_start, edge_stop, inner.astype(np.int64)))

    graph = GameGraph(
        root_state=root,
        num_players=num_players,
        node_player=node_player,
        node_infoset=node_infoset,
        edge_offsets=edge_offsets,
        edge_parent=edge_parent_arr,
        edge_child=edge_child_arr,
        edge_slot=np.asarray(edge_slot, dtype=np.int64),
        edge_player=node_player[edge_parent_arr],
        edge_utility=np.asarray(edge_utility, dtype=np.float64).reshape(-1, num_players),
        infoset_keys=infoset_keys,
        infoset_actions=infoset_actions,
        infoset_player=np.asarray(infoset_player_list, dtype=np.int64),
        slot_offsets=np.asarray(slot_starts + [num_slots], dtype=np.int64),
        layers=layers,
    )
    logger.info(
        f"Built game graph: {graph.num_nodes} nodes, {graph.num_edges} edges, "
        f"{graph.num_infosets} information sets, {len(layers)} layers"
    )
    return graph
