"""
Extraction instructions and target JSON shape shared by every provider.

Gemini receives RESPONSE_JSON_SCHEMA as a structured-output schema; the
other providers get it embedded in the prompt text (build_schema_prompt).
"""
import json

MASTER_SYSTEM_PROMPT = """You are an expert OCR system specializing in utility bills from ANY provider. Your primary goal is to analyze the provided image, even if it is of low quality or at an angle, and extract the required information with high accuracy.

**Instructions:**
- Analyze the provided utility bill image and extract the information below.
- Format your response strictly as a JSON object that adheres to the provided schema. Do not include any introductory text, explanations, or markdown formatting. Your entire output must be the raw JSON object.
- **Data in Charts**: Carefully estimate the values from the bar heights relative to the y-axis if exact numbers aren't present.
- **Confidence Score**: For each field, provide a confidence score between 0.0 (not confident) and 1.0 (very confident) based on the clarity and unambiguity of the information in the image.
- **Final Check**: Ensure every required field in the schema is present. If an optional field is not found, omit it from the final JSON."""

USER_INSTRUCTION = "Analyze this utility bill image and provide the specified JSON output."


def _string(description: str = "") -> dict:
    return {"type": "STRING", "description": description} if description else {"type": "STRING"}


def _number(description: str = "") -> dict:
    return {"type": "NUMBER", "description": description} if description else {"type": "NUMBER"}


RESPONSE_JSON_SCHEMA = {
    "type": "OBJECT",
    "properties": {
        "accountName": _string("The name of the account holder."),
        "accountNumber": _string("The unique account identifier."),
        "serviceAddress": _string("The address where services are rendered."),
        "statementDate": _string("The date the bill was issued (YYYY-MM-DD)."),
        "servicePeriodStart": _string("Start date of the service period (YYYY-MM-DD)."),
        "servicePeriodEnd": _string("End date of the service period (YYYY-MM-DD)."),
        "totalCurrentCharges": _number("The total amount due for the current period."),
        "dueDate": _string("The date the payment is due (YYYY-MM-DD)."),
        "confidenceScores": {
            "type": "OBJECT",
            "description": "Confidence scores from 0.0 to 1.0 for each extracted field.",
            "properties": {
                "overall": _number(),
                "accountName": _number(),
                "accountNumber": _number(),
                "serviceAddress": _number(),
                "statementDate": _number(),
                "totalCurrentCharges": _number(),
                "dueDate": _number(),
            },
            "required": ["overall", "accountNumber", "totalCurrentCharges", "dueDate"],
        },
        "usageCharts": {
            "type": "ARRAY",
            "items": {
                "type": "OBJECT",
                "properties": {
                    "title": _string("The title of the usage chart (e.g., 'Electricity Usage')."),
                    "unit": _string("The unit of measurement (e.g., 'kWh', 'Therms')."),
                    "data": {
                        "type": "ARRAY",
                        "items": {
                            "type": "OBJECT",
                            "properties": {
                                "month": _string("The month for the data point (e.g., 'Jan', 'Feb')."),
                                "usage": {
                                    "type": "ARRAY",
                                    "items": {
                                        "type": "OBJECT",
                                        "properties": {
                                            "year": _string("The year of the usage, e.g., '2023'."),
                                            "value": _number("The usage value for that year."),
                                        },
                                        "required": ["year", "value"],
                                    },
                                },
                            },
                            "required": ["month", "usage"],
                        },
                    },
                },
                "required": ["title", "unit", "data"],
            },
        },
        "lineItems": {
            "type": "ARRAY",
            "items": {
                "type": "OBJECT",
                "properties": {
                    "description": _string("Description of the charge or credit."),
                    "amount": _number("The amount for the line item."),
                },
                "required": ["description", "amount"],
            },
        },
    },
    "required": ["accountNumber", "totalCurrentCharges", "dueDate", "confidenceScores", "usageCharts", "lineItems"],
}


def _json_schema(node: dict) -> dict:
    """Lower-case the type tags so the schema reads as plain JSON Schema."""
    out = {k: v for k, v in node.items() if k not in ("type", "properties", "items")}
    out["type"] = node["type"].lower()
    if "properties" in node:
        out["properties"] = {k: _json_schema(v) for k, v in node["properties"].items()}
    if "items" in node:
        out["items"] = _json_schema(node["items"])
    return out


def build_schema_prompt() -> str:
    """System prompt for providers without structured output: task + schema."""
    schema = json.dumps(_json_schema(RESPONSE_JSON_SCHEMA), indent=2)
    return (
        f"{MASTER_SYSTEM_PROMPT}\n\n"
        f"The JSON object must match this JSON Schema:\n{schema}"
    )
