"""
Critique prompts and best-effort parsing of a verifier's reply.
"""

import json
import re
from typing import Any, Optional

from ..models import Response, VerificationResult

NEUTRAL_SCORE = 5
MIN_SCORE = 1
MAX_SCORE = 10

FENCE_PATTERN = re.compile(r"```(?:json)?\s*(.*?)\s*```", re.DOTALL | re.IGNORECASE)
OBJECT_PATTERN = re.compile(r"\{[\s\S]+\}")

CRITIQUE_PROMPT = """TURN MODE VERIFICATION TASK

You are performing AI-to-AI verification. Carefully analyze this response for accuracy, completeness, and quality.

ORIGINAL QUERY: "{query}"

RESPONSE TO VERIFY (from {provider}):
"{content}"

VERIFICATION CRITERIA:
1. Factual Accuracy - Are all stated facts correct?
2. Completeness - Does it adequately address the query?
3. Clarity - Is it clear and well-structured?
4. Bias Detection - Any obvious bias or unsupported claims?
5. Source Quality - Are implicit sources reliable?

Respond in JSON format with:
{{
  "accuracyScore": [1-10 rating],
  "factualErrors": ["list of any factual errors found"],
  "strengths": ["key strengths of the response"],
  "weaknesses": ["areas for improvement"],
  "overallAssessment": "detailed overall evaluation",
  "recommendations": ["specific suggestions for improvement"]
}}"""

SHARE_PROMPT = """TURN MODE CRITIQUE SHARING

Your colleague AI ({verifier}) has analyzed your previous response and provided feedback. Please review this critique professionally and provide your thoughts on the assessment.

ORIGINAL QUERY: "{query}"

YOUR ORIGINAL RESPONSE:
"{content}"

COLLEAGUE'S CRITIQUE:
- Accuracy Score: {score}/10
- Factual Errors Found: {factual_errors}
- Strengths: {strengths}
- Weaknesses: {weaknesses}
- Overall Assessment: {assessment}
- Recommendations: {recommendations}

Please respond with:
1. Your thoughts on the critique's accuracy
2. Any corrections or clarifications you'd like to make
3. How you might improve future responses based on this feedback

Keep your response professional and constructive."""

FACT_CHECK_PROMPT = """Please fact-check the following response to the query "{query}":

Response to check: "{content}"

Provide a detailed fact-check including:
1. Overall accuracy assessment
2. Any factual errors or inaccuracies
3. Missing important information
4. Sources or evidence to support or refute claims
5. Confidence level in your assessment

Be thorough and objective in your analysis."""

REPLY_PROMPT = """Based on this AI response to the query "{query}", generate a thoughtful follow-up question or comment that would help clarify, expand on, or challenge the response constructively.

Original query: "{query}"
AI Response: "{content}"
{context}
Generate a meaningful reply that:
1. Shows engagement with the content
2. Asks for clarification on unclear points
3. Requests additional details or examples
4. Challenges assumptions respectfully
5. Explores implications or applications

Provide only the reply text, no explanations."""


def build_critique_prompt(query: str, response: Response) -> str:
    return CRITIQUE_PROMPT.format(
        query=query,
        provider=response.provider,
        content=response.content,
    )


def build_share_prompt(query: str, response: Response, critique: VerificationResult) -> str:
    return SHARE_PROMPT.format(
        verifier=critique.verifier,
        query=query,
        content=response.content,
        score=_format_score(critique.accuracy_score),
        factual_errors="; ".join(critique.factual_errors) or "None identified",
        strengths="; ".join(critique.strengths) or "None listed",
        weaknesses="; ".join(critique.weaknesses) or "None listed",
        assessment=critique.overall_assessment,
        recommendations="; ".join(critique.recommendations) or "None listed",
    )


def build_fact_check_prompt(query: str, response: Response) -> str:
    return FACT_CHECK_PROMPT.format(query=query, content=response.content)


def build_reply_prompt(query: str, response: Response, context: Optional[str] = None) -> str:
    context_line = f"Additional context: {context}\n" if context else ""
    return REPLY_PROMPT.format(query=query, content=response.content, context=context_line)


def _format_score(score: float) -> str:
    return str(int(score)) if float(score).is_integer() else f"{score:.1f}"


def extract_json_object(text: str) -> Optional[dict[str, Any]]:
    """Find a JSON object in model output: bare, fenced, or embedded in prose."""
    candidates = [text.strip()]
    candidates.extend(m.group(1) for m in FENCE_PATTERN.finditer(text))
    object_match = OBJECT_PATTERN.search(text)
    if object_match:
        candidates.append(object_match.group())

    for candidate in candidates:
        if not candidate:
            continue
        try:
            data = json.loads(candidate)
        except json.JSONDecodeError:
            continue
        if isinstance(data, dict):
            return data
    return None


def _coerce_score(value: Any) -> float:
    try:
        score = float(value)
    except (TypeError, ValueError):
        return NEUTRAL_SCORE
    if score != score:  # NaN
        return NEUTRAL_SCORE
    return max(MIN_SCORE, min(MAX_SCORE, score))


def _coerce_list(value: Any) -> list[str]:
    if value is None:
        return []
    if isinstance(value, (list, tuple)):
        return [str(item) for item in value if item is not None and str(item).strip()]
    text = str(value).strip()
    return [text] if text else []


def degraded_result(text: str, verifier: str) -> VerificationResult:
    return VerificationResult(
        verifier=verifier,
        accuracy_score=NEUTRAL_SCORE,
        strengths=["Analysis provided"],
        weaknesses=["Could not parse detailed verification"],
        overall_assessment=text.strip() or "Analysis completed",
        recommendations=[],
        parse_failed=True,
    )


def parse_critique(text: Optional[str], verifier: str) -> VerificationResult:
    """
    Turn a verifier's reply into a VerificationResult.

    Never raises: when no JSON object can be recovered the raw text becomes the
    overall assessment and the result is flagged with `parse_failed`.
    """
    text = text or ""
    data = extract_json_object(text)
    if data is None:
        return degraded_result(text, verifier)

    assessment = data.get("overallAssessment", data.get("overall_assessment"))
    assessment = str(assessment).strip() if assessment is not None else ""

    return VerificationResult(
        verifier=verifier,
        accuracy_score=_coerce_score(data.get("accuracyScore", data.get("accuracy_score"))),
        factual_errors=_coerce_list(data.get("factualErrors", data.get("factual_errors"))),
        strengths=_coerce_list(data.get("strengths")),
        weaknesses=_coerce_list(data.get("weaknesses")),
        overall_assessment=assessment or "Analysis completed",
        recommendations=_coerce_list(data.get("recommendations")),
    )
