# analysis.py
import json
import logging
import re
from dataclasses import dataclass, field
from typing import List, Optional, Sequence

import requests

import config
from stations import Station

logger = logging.getLogger(__name__)

FALLBACK_SUMMARY = "暫時無法分析此區域，請稍後再試。"
FALLBACK_PLACES = ["請檢查網路連線", "或 API 金鑰設定"]

_FENCE_START = re.compile(r"^```(?:json)?\s*")
_FENCE_END = re.compile(r"\s*```$")


class AnalysisError(Exception):
    pass


@dataclass
class AnalysisResult:
    summary: str
    places: List[str] = field(default_factory=list)


def fallback_result() -> AnalysisResult:
    return AnalysisResult(FALLBACK_SUMMARY, list(FALLBACK_PLACES))


def build_prompt(stations: Sequence[Station], minutes: int) -> str:
    names = "、".join(s.name for s in stations)
    many = len(stations) > 1
    return f"""
我正在分析台北捷運 "{names}" {'這幾個捷運站' if many else '站'}周邊的可步行範圍。

請想像以{'這些站點' if many else '該站'}為中心，步行 {minutes} 分鐘 (大約 {minutes * config.WALK_SPEED_M_PER_MIN} 公尺) 的範圍。

請以繁體中文 (Traditional Chinese) 提供以下資訊：
1. 一個簡短的段落，描述{'這些區域的綜合' if many else '這個範圍內的'}生活氛圍、特色或適合的族群 (最多 100 字)。
2. 列出 3 到 5 個具體的推薦地點類別或地標 (例如：著名的咖啡廳區域、特定公園、夜市、或文化景點)，並附帶一句簡短說明。

請以 JSON 格式回傳，格式如下：
{{
  "summary": "...",
  "places": ["地標/類別 1: 說明", "地標/類別 2: 說明", "地標/類別 3: 說明"]
}}
""".strip()


def parse_response_text(text: Optional[str]) -> AnalysisResult:
    if not text:
        raise AnalysisError("empty response from text generation service")
    text = _FENCE_END.sub("", _FENCE_START.sub("", text.strip()))
    try:
        data = json.loads(text)
    except ValueError as e:
        raise AnalysisError(f"malformed JSON: {e}") from e

    summary = data.get("summary") if isinstance(data, dict) else None
    places = data.get("places") if isinstance(data, dict) else None
    if not isinstance(summary, str) or not isinstance(places, list):
        raise AnalysisError("response is missing 'summary' or 'places'")
    return AnalysisResult(summary, [str(p) for p in places])


def _extract_text(payload) -> Optional[str]:
    try:
        parts = payload["candidates"][0]["content"]["parts"]
    except (KeyError, IndexError, TypeError):
        return None
    if not isinstance(parts, list):
        raise AnalysisError(f"unexpected response parts: {parts!r}")
    texts = []
    for p in parts:
        text = p.get("text") if isinstance(p, dict) else None
        if text is None:
            continue
        if not isinstance(text, str):
            raise AnalysisError(f"unexpected text part: {text!r}")
        texts.append(text)
    return "".join(texts)


def _generate(prompt: str, api_key: str, model: str, timeout: float) -> str:
    url = config.GEMINI_ENDPOINT.format(model=model)
    body = {
        "contents": [{"parts": [{"text": prompt}]}],
        "generationConfig": {"responseMimeType": "application/json"},
    }
    resp = requests.post(url, json=body, headers={"x-goog-api-key": api_key}, timeout=timeout)
    resp.raise_for_status()
    return _extract_text(resp.json())


def analyze(stations: Sequence[Station], max_minutes: int,
            api_key: Optional[str] = None, model: Optional[str] = None,
            timeout: Optional[float] = None) -> AnalysisResult:
    """
    Describe the walkable area around `stations`. Never raises: any failure
    (no key, network, bad payload) yields the fixed fallback result.
    """
    api_key = api_key if api_key is not None else config.GEMINI_API_KEY
    model = model or config.GEMINI_MODEL
    timeout = timeout if timeout is not None else config.GEMINI_TIMEOUT_S
    try:
        if not api_key:
            raise AnalysisError("no API key configured (set GEMINI_API_KEY)")
        text = _generate(build_prompt(stations, max_minutes), api_key, model, timeout)
        return parse_response_text(text)
    except (AnalysisError, requests.RequestException, ValueError) as e:
        logger.error("Area analysis failed: %s", e)
        return fallback_result()
