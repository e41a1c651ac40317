"""POST /v1/network/* - Trust network analytics over a caller-supplied snapshot"""

import math
import time
from dataclasses import asdict

from fastapi import APIRouter, HTTPException, Request

from trust_engine.api.dependencies import get_request_id
from trust_engine.api.v1.schemas import (
    ConnectionRequest,
    ConnectionResponse,
    NetworkResponse,
    NodeSchema,
    PathSchema,
    SnapshotRequest,
    UserNetworkResponse,
)
from trust_engine.config import settings
from trust_engine.domain.exceptions import UnknownUserError
from trust_engine.domain.trust_network import (
    TrustNetwork,
    build_network,
    calculate_centrality,
    calculate_trust_distance,
    find_mutual_connections,
    find_path,
    get_node,
    local_clustering_coefficient,
)
from trust_engine.infrastructure.observability.logging import log_network_built
from trust_engine.infrastructure.observability.metrics import network_nodes_histogram

router = APIRouter()


def build_snapshot_network(snapshot: SnapshotRequest) -> TrustNetwork:
    network = build_network(
        [user.to_domain() for user in snapshot.users],
        [loan.to_domain() for loan in snapshot.loans],
        hub_count=settings.trust_hub_count,
    )
    network_nodes_histogram.observe(len(network.nodes))
    return network


@router.post("/network/analyze", response_model=NetworkResponse)
def analyze_network(request_body: SnapshotRequest, request: Request):
    """
    Build the trust network and its metrics rollup.

    Returns:
        Nodes, aggregated edges, and network metrics (size, average degree,
        clustering coefficient, trust hubs)
    """
    start_time = time.time()
    network = build_snapshot_network(request_body)

    duration_ms = (time.time() - start_time) * 1000
    log_network_built(get_request_id(request), len(network.nodes), len(network.edges), duration_ms)

    return NetworkResponse.model_validate(
        {
            "nodes": [asdict(node) for node in network.nodes],
            "edges": [asdict(edge) for edge in network.edges],
            "metrics": asdict(network.metrics),
        }
    )


@router.post("/network/connection", response_model=ConnectionResponse)
def get_connection(request_body: ConnectionRequest):
    """
    Shortest trust path, trust distance and mutual connections between two users.

    An unreachable target is a valid result: path and trust_distance are null.
    """
    network = build_snapshot_network(request_body)
    source, target = request_body.source_id, request_body.target_id

    result = find_path(network, source, target)
    distance = calculate_trust_distance(network, source, target)

    return ConnectionResponse(
        path=PathSchema.model_validate(asdict(result)) if result else None,
        trust_distance=distance if math.isfinite(distance) else None,
        mutual_connections=find_mutual_connections(network, source, target),
    )


@router.post("/network/users/{user_id}", response_model=UserNetworkResponse)
def get_user_position(user_id: str, request_body: SnapshotRequest):
    """Centrality, clustering and neighbors of one user within the snapshot"""
    network = build_snapshot_network(request_body)

    try:
        node = get_node(network, user_id)
    except UnknownUserError as e:
        raise HTTPException(status_code=404, detail=str(e))

    return UserNetworkResponse(
        node=NodeSchema.model_validate(asdict(node)),
        centrality=calculate_centrality(network)[user_id],
        clustering_coefficient=local_clustering_coefficient(network, user_id),
        neighbors=network.neighbor_ids(user_id),
    )
