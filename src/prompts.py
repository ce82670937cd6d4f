"""
RPI Engine — Prompt & Response Schema
======================================
The analysis instruction sent with every narrative, and the JSON Schema the
model must answer with (passed as a forced tool so the reply is structured).
"""

TOOL_NAME = "record_rpi_analysis"

_NUMBER = {"type": "number"}
_STRING = {"type": "string"}

RESPONSE_SCHEMA = {
    "type": "object",
    "properties": {
        "metrics": {
            "type": "object",
            "properties": {"emo": _NUMBER, "spa": _NUMBER, "soc": _NUMBER},
            "required": ["emo", "spa", "soc"],
        },
        "weights": {
            "type": "object",
            "properties": {"alpha": _NUMBER, "beta": _NUMBER, "gamma": _NUMBER},
            "required": ["alpha", "beta", "gamma"],
        },
        "rpiScore": _NUMBER,
        "summary": _STRING,
        "criticalPeriod": _STRING,
        "trajectory": {
            "type": "array",
            "items": {
                "type": "object",
                "properties": {"period": _STRING, "score": _NUMBER},
                "required": ["period", "score"],
            },
        },
        "knowledgeGraph": {
            "type": "object",
            "properties": {
                "nodes": {
                    "type": "array",
                    "items": {
                        "type": "object",
                        "properties": {
                            "id": _STRING,
                            "label": _STRING,
                            "type": {"type": "string", "enum": ["Place", "Activity", "Interaction"]},
                        },
                        "required": ["id", "label", "type"],
                    },
                },
                "edges": {
                    "type": "array",
                    "items": {
                        "type": "object",
                        "properties": {"source": _STRING, "target": _STRING, "strength": _NUMBER},
                        "required": ["source", "target", "strength"],
                    },
                },
            },
            "required": ["nodes", "edges"],
        },
        "shapValue": {
            "type": "object",
            "properties": {"emo": _NUMBER, "spa": _NUMBER, "soc": _NUMBER},
        },
    },
    "required": [
        "metrics", "weights", "rpiScore", "summary",
        "trajectory", "knowledgeGraph", "criticalPeriod", "shapValue",
    ],
}

SYSTEM_PROMPT = (
    "You are a GeoAI model that computes the Relational Population Index (RPI) "
    "for regional research. You always answer by calling the "
    f"{TOOL_NAME} tool exactly once. Numbers carry at most two decimal places."
)

ANALYSIS_TEMPLATE = """\
Analyze the 'one-month stay' diary or SNS text below and report results
following this research methodology.

1. Three quantitative indicators (0-100 each):
   - X_emo (emotional attachment): strength of expressed bonding and psychological stability
   - X_spa (spatial occupancy): visits to, and descriptions of occupying, everyday places
     (village hall, market, and similar)
   - X_soc (social interaction): frequency and depth of exchanges with residents and merchants

2. Self-attention weights (alpha, beta, gamma for emo, spa, soc):
   Give the highest weight to the indicator that contributed most to the intent to
   revisit or to regional attachment. The three weights must sum to 1.0.
   rpiScore is the weighted combination alpha*emo + beta*spa + gamma*soc.

3. Sentiment trajectory:
   Split the text's flow into Week 1 to Week 4 and estimate how the
   relationship-formation score changes (0-100 per week).

4. Spatio-temporal knowledge graph (ST-KG):
   Extract the main places, activities and interactions as nodes
   (type: Place, Activity or Interaction) and the links between them with a
   relationship-formation probability (strength, 0-1).

5. Critical period:
   Identify the period where relationship formation surges or drop-out risk appears.

Also give a short summary (one or two sentences) and, in shapValue, the signed
contribution of each indicator (emo, spa, soc) to the final index.

Text to analyze:
"{text}"
"""


def build_prompt(text: str) -> str:
    """Embed the narrative verbatim into the analysis instruction."""
    return ANALYSIS_TEMPLATE.format(text=text)


def build_tool() -> dict:
    """Tool definition whose input schema is the structured answer."""
    return {
        "name": TOOL_NAME,
        "description": "Record the RPI analysis of the narrative in structured form.",
        "input_schema": RESPONSE_SCHEMA,
    }
