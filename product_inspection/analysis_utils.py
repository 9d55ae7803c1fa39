"""
LLM analysis utilities for the product inspector.

Builds the analysis prompt, turns the gateway's reply into a validated
ParsedAnalysis (or the schema's fixed fallback when the reply is unusable)
and normalizes the result into the ranges the cache table accepts.
"""

import json
import math
import re
from typing import Dict, List, Optional, Tuple

from pydantic import ValidationError

from .models import PageMetadata, ParsedAnalysis
from .schemas import ResponseSchema

SYSTEM_PROMPT = 'You are a product analyst AI. Always respond with valid JSON only, no markdown formatting.'

SCORE_RANGE = (0, 100)
SENTIMENT_RANGE = (-1.0, 1.0)

_FENCE_PATTERN = re.compile(r'```(?:json)?\n?|\n?```', re.I)


def build_prompt(url: str, domain: str, metadata: PageMetadata, schema: ResponseSchema) -> str:
    """Build the user prompt for one product."""
    items = [
        'A score from 0-100 (higher is better) based on various factors',
        'A short 1-2 sentence review',
        f'{schema.pros_cap} pros (positive aspects)',
        f'{schema.cons_cap} cons (negative aspects)',
        'A sentiment score between -1 and 1',
    ]
    pros_example = ', '.join(['"string"'] * schema.pros_cap)
    cons_example = ', '.join(['"string"'] * schema.cons_cap)
    fields = [
        '  "score": number (0-100)',
        '  "short_review": "string"',
        f'  "pros": [{pros_example}]',
        f'  "cons": [{cons_example}]',
        '  "sentiment_score": number (-1 to 1)',
    ]

    if schema.extended:
        items += [
            'The product category (e.g. "Headphones", "Running Shoes")',
            f'Exactly {schema.category_scores_cap} category-specific sub-scores (0-100), each with a short label',
            'Stores where this product can be bought, with a link and price when known',
            'A short summary of what external reviews say about this product',
            'The number of review sources you considered',
        ]
        fields += [
            '  "category": "string"',
            '  "category_scores": [{"label": "string", "score": number (0-100)}]',
            '  "stores": [{"name": "string", "url": "string", "price": "string"}]',
            '  "reviews_summary": "string"',
            '  "sources_count": number',
        ]

    numbered = '\n'.join(f'{i}. {item}' for i, item in enumerate(items, start=1))
    body = ',\n'.join(fields)

    return f"""You are a product analyst. Analyze this product and provide:
{numbered}

Product Info:
URL: {url}
Domain: {domain}
Title: {metadata.title}
Description: {metadata.description or 'Not available'}

Respond in JSON format only:
{{
{body}
}}"""


def build_messages(url: str, domain: str, metadata: PageMetadata, schema: ResponseSchema) -> List[Dict]:
    return [
        {'role': 'system', 'content': SYSTEM_PROMPT},
        {'role': 'user', 'content': build_prompt(url, domain, metadata, schema)},
    ]


def extract_message_content(payload) -> Optional[str]:
    """Pull choices[0].message.content out of a chat-completion reply."""
    try:
        content = payload['choices'][0]['message']['content']
    except (KeyError, IndexError, TypeError):
        return None
    return content if isinstance(content, str) else None


def strip_code_fences(text: str) -> str:
    """Remove ```json ... ``` wrapping the model sometimes adds anyway."""
    return _FENCE_PATTERN.sub('', text).strip()


def fallback_analysis(schema: ResponseSchema) -> ParsedAnalysis:
    return ParsedAnalysis.model_validate(schema.fallback)


def parse_analysis(content: Optional[str], schema: ResponseSchema) -> Tuple[ParsedAnalysis, Optional[str]]:
    """
    Parse the model's reply.

    Args:
        content: Raw message content from the gateway (may be None)
        schema: Active response schema, supplies the fallback

    Returns:
        Tuple of (analysis, fallback_reason). fallback_reason is None when
        the reply parsed and validated; otherwise it says why the fixed
        fallback analysis was substituted.
    """
    if not content:
        return fallback_analysis(schema), 'empty model response'

    try:
        data = json.loads(strip_code_fences(content))
    except ValueError as e:
        return fallback_analysis(schema), f'invalid JSON: {e}'

    if not isinstance(data, dict):
        return fallback_analysis(schema), f'expected a JSON object, got {type(data).__name__}'

    try:
        return ParsedAnalysis.model_validate(data), None
    except ValidationError as e:
        return fallback_analysis(schema), f'unexpected shape: {e.error_count()} validation error(s)'


def clamp(value: float, low: float, high: float) -> float:
    return min(high, max(low, value))


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def normalize_score(value: float) -> int:
    """Round to the nearest integer (halves up) and clamp to 0..100."""
    return int(clamp(round_half_up(value), *SCORE_RANGE))


def normalize_sentiment(value: float) -> float:
    return float(clamp(value, *SENTIMENT_RANGE))


def cap_list(values, cap: int) -> list:
    """First `cap` items of a list, or an empty list for anything else."""
    if not isinstance(values, list):
        return []
    return list(values[:cap])


def normalize_analysis(analysis: ParsedAnalysis, schema: ResponseSchema) -> Dict:
    """
    Clamp and truncate a parsed analysis into AnalysisRecord fields.

    Returns:
        Dict with ai_score, sentiment_score, short_review, pros, cons and,
        for the extended schema, category, category_scores, stores,
        reviews_summary and sources_count.
    """
    result = {
        'ai_score': normalize_score(analysis.score),
        'sentiment_score': normalize_sentiment(analysis.sentiment_score),
        'short_review': analysis.short_review,
        'pros': cap_list(analysis.pros, schema.pros_cap),
        'cons': cap_list(analysis.cons, schema.cons_cap),
    }

    if schema.extended:
        category_scores = [
            {'label': s.label, 'score': normalize_score(s.score)}
            for s in analysis.category_scores[:schema.category_scores_cap]
        ]
        result.update({
            'category': analysis.category,
            'category_scores': category_scores,
            'stores': [s.model_dump() for s in analysis.stores],
            'reviews_summary': analysis.reviews_summary,
            'sources_count': max(0, analysis.sources_count),
        })

    return result
