"""
RPI Engine — Data Models
=========================
All enums, dataclasses, and data structures used across the analysis pipeline.
The wire format (camelCase keys) is the structured-output schema the remote
model answers with; from_dict/to_dict convert between the two.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional


# ---------------------------------------------------------------------------
# Metric vocabulary
# ---------------------------------------------------------------------------
# Three indicators, each paired with one self-attention weight:
#   emo <-> alpha, spa <-> beta, soc <-> gamma

class MetricKey(str, Enum):
    """The three 0-100 indicators the model scores."""
    EMO = "emo"   # X_emo: emotional attachment (bonding, psychological stability)
    SPA = "spa"   # X_spa: spatial occupancy (everyday places visited and held)
    SOC = "soc"   # X_soc: social interaction (exchanges with residents, merchants)


class NodeType(str, Enum):
    """Node categories of the spatio-temporal knowledge graph (ST-KG)."""
    PLACE = "Place"
    ACTIVITY = "Activity"
    INTERACTION = "Interaction"


METRIC_LABELS = {
    MetricKey.EMO.value: "Emotional Attachment",
    MetricKey.SPA.value: "Spatial Occupancy",
    MetricKey.SOC.value: "Social Interaction",
}

WEIGHT_FOR_METRIC = {
    MetricKey.EMO.value: "alpha",
    MetricKey.SPA.value: "beta",
    MetricKey.SOC.value: "gamma",
}

REQUIRED_KEYS = (
    "metrics", "weights", "rpiScore", "summary",
    "trajectory", "knowledgeGraph", "criticalPeriod", "shapValue",
)


def _number(value, name: str) -> float:
    """Coerce a JSON number; bools and strings are rejected."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise TypeError(f"{name} must be a number, got {type(value).__name__}")
    return value


def _mapping(value, name: str) -> dict:
    if not isinstance(value, dict):
        raise TypeError(f"{name} must be an object, got {type(value).__name__}")
    return value


def _sequence(value, name: str) -> list:
    if not isinstance(value, list):
        raise TypeError(f"{name} must be an array, got {type(value).__name__}")
    return value


# ---------------------------------------------------------------------------
# Data structures
# ---------------------------------------------------------------------------

@dataclass
class RPIMetrics:
    """Three indicator scores, each nominally 0-100."""
    emo: float
    spa: float
    soc: float

    @classmethod
    def from_dict(cls, data: dict) -> "RPIMetrics":
        data = _mapping(data, "metrics")
        return cls(**{k: _number(data.get(k), f"metrics.{k}") for k in ("emo", "spa", "soc")})

    def as_dict(self) -> dict:
        return {"emo": self.emo, "spa": self.spa, "soc": self.soc}


@dataclass
class RPIWeights:
    """Self-attention weights; the prompt asks for alpha + beta + gamma = 1.0."""
    alpha: float  # weight for emo
    beta: float   # weight for spa
    gamma: float  # weight for soc

    @classmethod
    def from_dict(cls, data: dict) -> "RPIWeights":
        data = _mapping(data, "weights")
        return cls(**{k: _number(data.get(k), f"weights.{k}") for k in ("alpha", "beta", "gamma")})

    def as_dict(self) -> dict:
        return {"alpha": self.alpha, "beta": self.beta, "gamma": self.gamma}

    def for_metric(self, metric_key: str) -> float:
        return getattr(self, WEIGHT_FOR_METRIC[metric_key])

    @property
    def total(self) -> float:
        return self.alpha + self.beta + self.gamma


@dataclass
class TrajectoryPoint:
    """One step of the sentiment trajectory (week 1 .. week 4)."""
    period: str
    score: float


@dataclass
class KnowledgeNode:
    id: str
    label: str
    type: str  # NodeType value


@dataclass
class KnowledgeEdge:
    source: str
    target: str
    strength: float  # 0.0-1.0 relationship formation probability


@dataclass
class KnowledgeGraph:
    """ST-KG: places, activities and interactions with weighted links."""
    nodes: list = field(default_factory=list)
    edges: list = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: dict) -> "KnowledgeGraph":
        data = _mapping(data, "knowledgeGraph")
        nodes = []
        for i, raw in enumerate(_sequence(data.get("nodes", []), "knowledgeGraph.nodes")):
            raw = _mapping(raw, f"knowledgeGraph.nodes[{i}]")
            node_id = str(raw.get("id", f"n{i}"))
            node_type = raw.get("type", NodeType.PLACE.value)
            if node_type not in {t.value for t in NodeType}:
                raise ValueError(f"knowledgeGraph.nodes[{i}].type is not one of Place/Activity/Interaction: {node_type!r}")
            nodes.append(KnowledgeNode(id=node_id, label=str(raw.get("label", node_id)), type=node_type))
        edges = []
        for i, raw in enumerate(_sequence(data.get("edges", []), "knowledgeGraph.edges")):
            raw = _mapping(raw, f"knowledgeGraph.edges[{i}]")
            edges.append(KnowledgeEdge(
                source=str(raw.get("source", "")),
                target=str(raw.get("target", "")),
                strength=_number(raw.get("strength", 0.0), f"knowledgeGraph.edges[{i}].strength"),
            ))
        return cls(nodes=nodes, edges=edges)

    def node_label(self, node_id: str) -> str:
        """Resolve an edge endpoint to its display label (falls back to the id)."""
        for node in self.nodes:
            if node.id == node_id:
                return node.label
        return node_id


@dataclass
class AnalysisResult:
    """Complete structured answer for one narrative."""
    metrics: RPIMetrics
    weights: RPIWeights
    rpi_score: float
    summary: str
    trajectory: list = field(default_factory=list)
    knowledge_graph: KnowledgeGraph = field(default_factory=KnowledgeGraph)
    critical_period: str = ""
    shap_value: dict = field(default_factory=dict)
    warnings: list = field(default_factory=list)  # local consistency notes, never sent by the model

    @classmethod
    def from_dict(cls, data: dict) -> "AnalysisResult":
        """Build from the wire format. Raises KeyError/TypeError/ValueError on bad shape."""
        data = _mapping(data, "result")
        missing = [k for k in REQUIRED_KEYS if k not in data]
        if missing:
            raise KeyError(f"missing required field(s): {', '.join(missing)}")

        trajectory = []
        for i, raw in enumerate(_sequence(data["trajectory"], "trajectory")):
            raw = _mapping(raw, f"trajectory[{i}]")
            trajectory.append(TrajectoryPoint(
                period=str(raw.get("period", f"Week {i + 1}")),
                score=_number(raw.get("score"), f"trajectory[{i}].score"),
            ))

        shap = {
            str(k): _number(v, f"shapValue.{k}")
            for k, v in _mapping(data["shapValue"], "shapValue").items()
        }

        summary = data["summary"]
        critical = data["criticalPeriod"]
        if not isinstance(summary, str):
            raise TypeError("summary must be a string")
        if not isinstance(critical, str):
            raise TypeError("criticalPeriod must be a string")

        return cls(
            metrics=RPIMetrics.from_dict(data["metrics"]),
            weights=RPIWeights.from_dict(data["weights"]),
            rpi_score=_number(data["rpiScore"], "rpiScore"),
            summary=summary,
            trajectory=trajectory,
            knowledge_graph=KnowledgeGraph.from_dict(data["knowledgeGraph"]),
            critical_period=critical,
            shap_value=shap,
        )

    def to_dict(self) -> dict:
        """Back to the wire format (warnings are not part of it)."""
        return {
            "metrics": self.metrics.as_dict(),
            "weights": self.weights.as_dict(),
            "rpiScore": self.rpi_score,
            "summary": self.summary,
            "trajectory": [{"period": p.period, "score": p.score} for p in self.trajectory],
            "knowledgeGraph": {
                "nodes": [{"id": n.id, "label": n.label, "type": n.type} for n in self.knowledge_graph.nodes],
                "edges": [
                    {"source": e.source, "target": e.target, "strength": e.strength}
                    for e in self.knowledge_graph.edges
                ],
            },
            "criticalPeriod": self.critical_period,
            "shapValue": dict(self.shap_value),
        }

    def contribution(self, metric_key: str) -> float:
        """SHAP-labeled contribution for one metric; 0.0 when the model omitted it."""
        return self.shap_value.get(metric_key, 0.0) or 0.0


@dataclass
class HistoryItem:
    """One stored analysis session in the research repository."""
    id: str
    timestamp: int  # epoch milliseconds
    text: str
    result: AnalysisResult
    model: Optional[str] = None


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------

DEFAULT_USER_MESSAGE = (
    "The RPI analysis could not be completed. "
    "The text may not match the dataset criteria."
)


class AnalysisError(Exception):
    """Raised when a narrative cannot be turned into an AnalysisResult.

    user_message is safe to show in the dashboard; cause keeps the technical detail.
    """

    def __init__(self, user_message: str = DEFAULT_USER_MESSAGE, cause: Optional[str] = None):
        super().__init__(cause or user_message)
        self.user_message = user_message
        self.cause = cause
