# ============================================================================
# src/report_comparison/analyzer/prompts.py
# ============================================================================
"""
Extraction prompt for lab reports.
"""

from typing import Optional


LAB_EXTRACTION_PROMPT = """You are extracting laboratory results from a single lab report.

Return ONLY a JSON object with this exact structure:
{{
  "test_name": "name of the panel or test, e.g. Complete Blood Count",
  "test_category": "e.g. Hematology, Chemistry, Lipid Panel",
  "report_date": "collection or report date as YYYY-MM-DD, or null if absent",
  "test_results": [
    {{
      "parameter": "analyte name exactly as printed",
      "value": "result value as printed, without the unit",
      "unit": "unit as printed",
      "reference_range": "reference range as printed",
      "status": "Normal | High | Low | Abnormal"
    }}
  ]
}}

Rules:
- One entry per analyte; do not invent analytes that are not on the report.
- Use the flag printed on the report for status; if none, compare the value to the reference range.
- Do not interpret the results or add commentary.
{instructions}
{document}"""


def build_extraction_prompt(document_text: str = "", instructions: Optional[str] = None) -> str:
    """
    Format the extraction prompt.

    Args:
        document_text: Text pulled from a PDF; empty when the report is
            sent as an image.
        instructions: Optional requester guidance appended to the rules.
    """
    extra = f"- Additional instructions: {instructions.strip()}\n" if instructions and instructions.strip() else ""
    if document_text:
        document = f"\nREPORT TEXT:\n{document_text}\n"
    else:
        document = "\nThe report is attached as an image.\n"
    return LAB_EXTRACTION_PROMPT.format(instructions=extra, document=document)
