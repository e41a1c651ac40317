"""Trust network analytics - undirected lending graph built from a user/loan snapshot"""

import logging
import math
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence

import networkx as nx

from trust_engine.domain.exceptions import UnknownUserError
from trust_engine.domain.models import (
    EdgeStatus,
    LoanRecord,
    NetworkEdge,
    NetworkMetrics,
    NetworkNode,
    PathResult,
    UserRecord,
)

logger = logging.getLogger(__name__)

MAX_TRUST_SCORE = 150
PATH_DECAY = 0.8  # Per-hop discount on chained trust
UNTRUSTED_PATH_WEIGHT = 10  # Distance multiplier when path trust rounds to 0


def build_graph(nodes: Sequence[NetworkNode], edges: Sequence[NetworkEdge]) -> nx.Graph:
    """
    Undirected NetworkX graph over the snapshot.

    Every user is added first so isolated users stay in the graph; loans
    naming users outside the snapshot add those endpoints as bare nodes.
    Each aggregated pair becomes one edge carrying its NetworkEdge fields.
    """
    G = nx.Graph()

    for node in nodes:
        G.add_node(node.id, trust_score=node.trust_score)

    for edge in edges:
        G.add_edge(
            edge.source,
            edge.target,
            loan_count=edge.loan_count,
            total_amount=edge.total_amount,
            status=edge.status,
            success_rate=edge.success_rate,
            bidirectional=edge.bidirectional,
        )

    return G


@dataclass
class TrustNetwork:
    nodes: List[NetworkNode]
    edges: List[NetworkEdge]
    metrics: Optional[NetworkMetrics] = None
    graph: Optional[nx.Graph] = field(default=None, repr=False, compare=False)

    def __post_init__(self):
        if self.graph is None:
            self.graph = build_graph(self.nodes, self.edges)

    def neighbor_ids(self, user_id: str) -> List[str]:
        if user_id not in self.graph:
            return []
        return list(self.graph.neighbors(user_id))


def _display_name(user: UserRecord) -> str:
    if user.first_name and user.last_name:
        return f"{user.first_name} {user.last_name}"
    return user.email


def build_network(
    users: Sequence[UserRecord],
    loans: Sequence[LoanRecord],
    hub_count: int = 5,
) -> TrustNetwork:
    """
    Transform raw user and loan rows into a trust network.

    Every loan between the same unordered pair is merged into one edge:
    - loan_count / total_amount accumulate
    - status precedence: disputed > active > completed
    - success_rate = completed loans / all loans for the pair
    - bidirectional when the pair has lent in both directions

    Any loan status other than COMPLETED or DISPUTED counts as active.
    """
    given: Dict[str, int] = defaultdict(int)
    taken: Dict[str, int] = defaultdict(int)
    volume: Dict[str, float] = defaultdict(float)

    for loan in loans:
        given[loan.lender_id] += 1
        taken[loan.borrower_id] += 1
        volume[loan.lender_id] += loan.amount
        volume[loan.borrower_id] += loan.amount

    nodes = [
        NetworkNode(
            id=user.id,
            email=user.email,
            name=_display_name(user),
            trust_score=user.trust_score,
            loans_given=given[user.id],
            loans_taken=taken[user.id],
            total_volume=volume[user.id],
        )
        for user in users
    ]

    # Aggregate loans per unordered pair; the first loan fixes source/target
    pairs: Dict[tuple, dict] = {}
    for loan in loans:
        key = tuple(sorted((loan.lender_id, loan.borrower_id)))
        status = loan.status.upper()
        tally = pairs.get(key)
        if tally is None:
            tally = pairs[key] = {
                "source": loan.lender_id,
                "target": loan.borrower_id,
                "count": 0,
                "amount": 0.0,
                "completed": 0,
                "disputed": False,
                "open": False,
                "directions": set(),
            }
        tally["count"] += 1
        tally["amount"] += loan.amount
        tally["directions"].add((loan.lender_id, loan.borrower_id))
        if status == "COMPLETED":
            tally["completed"] += 1
        elif status == "DISPUTED":
            tally["disputed"] = True
        else:
            tally["open"] = True

    edges = []
    for tally in pairs.values():
        if tally["disputed"]:
            status = EdgeStatus.DISPUTED
        elif tally["open"]:
            status = EdgeStatus.ACTIVE
        else:
            status = EdgeStatus.COMPLETED

        edges.append(
            NetworkEdge(
                source=tally["source"],
                target=tally["target"],
                loan_count=tally["count"],
                total_amount=tally["amount"],
                status=status,
                success_rate=tally["completed"] / tally["count"],
                bidirectional=len(tally["directions"]) == 2,
            )
        )

    network = TrustNetwork(nodes=nodes, edges=edges, graph=build_graph(nodes, edges))
    network.metrics = calculate_network_metrics(network, hub_count)

    logger.debug(
        "Built trust network",
        extra={"total_nodes": len(nodes), "total_edges": len(edges)},
    )
    return network


def get_node(network: TrustNetwork, user_id: str) -> NetworkNode:
    """Look up a node by id, raising UnknownUserError when absent"""
    for node in network.nodes:
        if node.id == user_id:
            return node
    raise UnknownUserError(user_id)


def calculate_centrality(network: TrustNetwork) -> Dict[str, float]:
    """Degree centrality normalized by the n-1 possible connections (0 when n <= 1)"""
    n = len(network.nodes)
    if n <= 1:
        return {node.id: 0.0 for node in network.nodes}

    G = network.graph
    if G.number_of_nodes() == n and nx.number_of_selfloops(G) == 0:
        centrality = nx.degree_centrality(G)
        return {node.id: centrality[node.id] for node in network.nodes}

    # Loans naming unknown users (or a user lending to itself): count distinct
    # neighbors and keep normalizing by the snapshot's own users
    return {node.id: len(G[node.id]) / (n - 1) for node in network.nodes}


def local_clustering_coefficient(network: TrustNetwork, user_id: str) -> float:
    """
    Fraction of a node's neighbor pairs that are themselves connected.

    Returns 0 for nodes with fewer than two neighbors.
    """
    if user_id not in network.graph:
        return 0.0
    return nx.clustering(network.graph, user_id)


def calculate_clustering_coefficient(network: TrustNetwork) -> float:
    """Network-wide average of the local clustering coefficients"""
    if not network.nodes:
        return 0.0
    coefficients = nx.clustering(network.graph)
    total = sum(coefficients.get(node.id, 0.0) for node in network.nodes)
    return total / len(network.nodes)


def _round_score(value: float) -> float:
    # Half-up rounding; NaN and infinities pass through untouched
    if not math.isfinite(value):
        return value
    return float(math.floor(value + 0.5))


def calculate_path_trust(network: TrustNetwork, path: Sequence[str]) -> float:
    """
    Trust carried along a chain of users, 0-100.

    Product of each known node's trust_score/150, discounted by 0.8 per hop
    so every intermediary compounds the risk.
    """
    if len(path) <= 1:
        return 100.0

    trust_by_id = {node.id: node.trust_score for node in network.nodes}
    product = 1.0
    for user_id in path:
        if user_id in trust_by_id:
            product *= trust_by_id[user_id] / MAX_TRUST_SCORE

    decay = PATH_DECAY ** (len(path) - 1)
    return _round_score(product * decay * 100)


def find_path(network: TrustNetwork, source_id: str, target_id: str) -> Optional[PathResult]:
    """
    Breadth-first shortest hop path between two users.

    Neighbors are explored in loan order, so ties resolve to the path
    discovered first. Returns None when the users are not connected.
    """
    if source_id == target_id:
        return PathResult(path=[source_id], distance=0, trust_score=100.0)

    G = network.graph
    if source_id not in G or target_id not in G:
        return None

    parent: Dict[str, str] = {}
    for node, predecessor in nx.bfs_predecessors(G, source_id):
        parent[node] = predecessor
        if node == target_id:
            break
    else:
        return None

    path = [target_id]
    while path[-1] != source_id:
        path.append(parent[path[-1]])
    path.reverse()

    return PathResult(
        path=path,
        distance=len(path) - 1,
        trust_score=calculate_path_trust(network, path),
    )


def find_mutual_connections(network: TrustNetwork, user_id_1: str, user_id_2: str) -> List[str]:
    """Users directly connected to both given users, in the first user's neighbor order"""
    G = network.graph
    if user_id_1 not in G or user_id_2 not in G:
        return []
    common = set(nx.common_neighbors(G, user_id_1, user_id_2))
    return [user_id for user_id in G.neighbors(user_id_1) if user_id in common]


def identify_trust_hubs(network: TrustNetwork, top_n: int = 5) -> List[NetworkNode]:
    """
    Rank users by degree × average incident success rate × trust_score/100.

    Ties keep snapshot order.
    """
    G = network.graph

    scored = []
    for node in network.nodes:
        incident = [rate for _, _, rate in G.edges(node.id, data="success_rate")]
        avg_success = sum(incident) / len(incident) if incident else 0.0
        scored.append((node, len(G[node.id]) * avg_success * (node.trust_score / 100)))

    scored.sort(key=lambda item: item[1], reverse=True)
    return [node for node, _ in scored[:top_n]]


def calculate_trust_distance(network: TrustNetwork, source_id: str, target_id: str) -> float:
    """Hop distance weighted by 100/path_trust; infinity when unreachable"""
    result = find_path(network, source_id, target_id)
    if result is None:
        return math.inf

    weight = 100 / result.trust_score if result.trust_score != 0 else UNTRUSTED_PATH_WEIGHT
    return result.distance * weight


def calculate_network_metrics(network: TrustNetwork, hub_count: int = 5) -> NetworkMetrics:
    """Rollup of size, average degree, clustering and the top trust hubs"""
    n = len(network.nodes)
    G = network.graph
    total_degree = sum(len(G[user_id]) for user_id in G)

    return NetworkMetrics(
        total_nodes=n,
        total_edges=len(network.edges),
        average_degree=total_degree / n if n else 0.0,
        clustering_coefficient=calculate_clustering_coefficient(network),
        trust_hubs=[hub.id for hub in identify_trust_hubs(network, hub_count)],
    )


def triangle_partners(network: TrustNetwork) -> Dict[str, Dict[str, int]]:
    """
    Single pass triangle enumeration over every edge.

    Returns user -> {partner: number of third users linked to both}, listing
    only partners that close at least one triangle with the user.
    """
    G = network.graph
    result: Dict[str, Dict[str, int]] = {}

    for source, target in G.edges():
        if source == target:
            continue
        common = sum(1 for _ in nx.common_neighbors(G, source, target))
        if common:
            result.setdefault(source, {})[target] = common
            result.setdefault(target, {})[source] = common

    return result
