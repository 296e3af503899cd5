"""Provenance — Pattern library.

Process-wide, read-only phrase lists and compiled matchers per provider /
technique. Everything here is built once at import time and never mutated,
so channels share it across threads without locking.

All literal phrases are lower-case; callers lower-case the text they scan.
"""

from __future__ import annotations

import re
from collections.abc import Iterable

# --- Provider names reported in DetectionResult.provider ---

MIDJOURNEY = "Midjourney"
OPENAI = "OpenAI"
STABLE_DIFFUSION = "Stable Diffusion (SDXL)"
FLUX = "FLUX"
COMFYUI = "ComfyUI"
GROK = "Grok"
ADOBE_FIREFLY = "Adobe Firefly"
GOOGLE_IMAGEN = "Google Imagen"
UNKNOWN_C2PA = "Unknown C2PA"
IPTC_TRAINED = "AI (IPTC Trained Media)"
PROMPT_IN_EXIF = "AI (Prompt in EXIF)"
AI_SOFTWARE = "AI (Software)"
GENERIC_TERMS = "AI (Generic Terms)"

# --- Markers ---

IPTC_TRAINED_MEDIA = "http://cv.iptc.org/newscodes/digitalsourcetype/trainedAlgorithmicMedia"
IPTC_TRAINED_MEDIA_LOWER = IPTC_TRAINED_MEDIA.lower()

PNG_SIGNATURE = b"\x89PNG\r\n\x1a\n"
SUI_IMAGE_PARAMS = "sui_image_params"

# --- Compiled matchers ---

GUID_RE = re.compile(r"\b[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}\b", re.IGNORECASE)
C2PA_SNIFF_RE = re.compile(rb"c2pa|jumbf|contentcredentials", re.IGNORECASE)
# Literal alternatives only; the "a ... b" vendor phrases go through in_order().
AI_SOFTWARE_RE = re.compile(r"midjourney|dall-?e|openai|sdxl|flux|bfl", re.IGNORECASE)
PROMPT_RE = re.compile(
    r'"prompt"|prompt:|\nprompt|\sprompt\s|positive_prompt|negative_prompt|textual_inversion|checkpoint|lora',
    re.IGNORECASE,
)
WORKFLOW_RE = re.compile(
    r"workflow|sampler|steps|cfg|seed|checkpoint|controlnet|embeddings|vae|clip_skip|hypernetwork",
    re.IGNORECASE,
)
# "ai" only as a standalone word; bare substring hits "paint", "detail", ...
GENERIC_AI_RE = re.compile(r"\bai\b|diffusion|artificial|generator|synthetic|stability", re.IGNORECASE)

# --- Phrase sets ---

MIDJOURNEY_FLAGS: tuple[str, ...] = (
    "--chaos",
    "--ar",
    "--profile",
    "--stylize",
    "--weird",
    "--v ",
    "--no ",
    "--seed",
    "job id:",
)

AI_MODEL_NAMES: tuple[str, ...] = (
    "sdxl", "flux", "wan", "midjourney", "dall-e", "stability", "dreamshaper",
    "realistic vision", "epic realism", "deliberate", "anything v", "counterfeit",
    "protogen", "rev animated", "chilloutmix", "meinamix", "f222", "anime", "sd_xl",
    "stable-diffusion-xl", "txt2img", "img2img", "controlnet", "lora", "hypernetwork",
    "embeddings", "textual_inversion", "vae", "clip_skip",
)

SDXL_TERMS: tuple[str, ...] = (
    "sdxl", "stable diffusion", "sd_xl", "stable-diffusion-xl", "txt2img", "img2img",
    "controlnet", "lora", "hypernetwork", "embeddings", "textual_inversion", "vae",
    "clip_skip", "ksampler", "sampler_name", "negativeprompt", "negative_prompt", "cfg", "steps",
)

COMFYUI_TERMS: tuple[str, ...] = (
    "comfyui", "comfy", "workflow", "node", "k_sampler", "checkpoint_loader",
    "clip_text_encode", "vae_decode", "empty_latent_image", "latent_upscale", "filename_prefix",
)

# Disabled unless the strict opt-in is enabled: too broad for opaque binaries.
GENERIC_AI_TERMS: tuple[str, ...] = (
    "ai_art", "ai_generated", "ai_artwork", "machine_learning", "neural_network",
    "generative", "synthetic", "computer_vision", "deep_learning", "text_to_image",
    "artificial", "generator",
)

GROK_PHRASES: tuple[str, ...] = (
    "grok image prompt",
    "grok image upsampled prompt",
    ">grok<",
    '"grok"',
    " g r o k ",
    "grok:",
)

# EXIF: any tag value carrying one of these is a prompt. "model" is excluded on purpose.
EXIF_PARAM_KEYWORDS: tuple[str, ...] = (
    "prompt", "negativeprompt", "negative_prompt", "sampler", "steps", "cfg", "seed",
)
COMMENT_PARAM_KEYWORDS: tuple[str, ...] = (
    "prompt", "negativeprompt", "negative_prompt", "sampler", "steps", "cfg",
    "sui_image_params", "sui_extra_data",
)
COMMENT_TAGS: frozenset[str] = frozenset({"usercomment", "imagedescription", "xpcomment"})

SOFTWARE_PROVIDERS: tuple[tuple[tuple[str, ...], str], ...] = (
    (("midjourney",), MIDJOURNEY),
    (("dall-e", "dalle", "openai"), OPENAI),
    (("stable diffusion", "sdxl"), STABLE_DIFFUSION),
    (("flux", "black forest labs", "bfl"), FLUX),
)

# Raw EXIF pre-scan: UTF-16 needles (either byte order).
EXIF_UTF16_NEEDLES: tuple[str, ...] = (SUI_IMAGE_PARAMS, "prompt")

# Binary channel: high-specificity phrases, checked in order.
BINARY_PHRASES: tuple[tuple[str, str], ...] = (
    (SUI_IMAGE_PARAMS, STABLE_DIFFUSION),
    ("stable diffusion", STABLE_DIFFUSION),
    ("midjourney", MIDJOURNEY),
    ("dall-e", OPENAI),
    ("textual_inversion", STABLE_DIFFUSION),
    ("negative_prompt", STABLE_DIFFUSION),
    ("positive_prompt", STABLE_DIFFUSION),
) + tuple((flag, MIDJOURNEY) for flag in MIDJOURNEY_FLAGS)

BINARY_UTF16_NEEDLES: tuple[str, ...] = (
    SUI_IMAGE_PARAMS, "textual_inversion", "checkpoint", "lora", "vae", "embeddings",
)

# Fast path: the smallest set; short flags (--ar, --v, --no) are left out.
FAST_PHRASES: tuple[tuple[str, str], ...] = (
    (SUI_IMAGE_PARAMS, STABLE_DIFFUSION),
    ("textual_inversion", STABLE_DIFFUSION),
    ("stable diffusion", STABLE_DIFFUSION),
    ("midjourney", MIDJOURNEY),
    ("dall-e", OPENAI),
    ("negative_prompt", STABLE_DIFFUSION),
    ("positive_prompt", STABLE_DIFFUSION),
    ("--chaos", MIDJOURNEY),
    ("--stylize", MIDJOURNEY),
    ("--weird", MIDJOURNEY),
    ("--profile", MIDJOURNEY),
)


def contains_any(haystack: str, needles: Iterable[str]) -> bool:
    """Case-insensitive substring test against any needle."""
    low = haystack.lower()
    return any(n.lower() in low for n in needles)


def first_phrase(haystack: bytes | bytearray, phrases: Iterable[tuple[str, str]]) -> tuple[str, str] | None:
    """Return the first (phrase, provider) whose ASCII phrase occurs in ``haystack``."""
    for phrase, provider in phrases:
        if phrase.encode("ascii") in haystack:
            return phrase, provider
    return None


def in_order(text: str, *parts: str) -> bool:
    """True when ``parts`` occur in this order on one line of ``text``, case-insensitively.

    Same result as ``re.search("a.*b.*c")`` without DOTALL, in linear time.
    """
    for line in text.lower().split("\n"):
        pos = 0
        for part in parts:
            pos = line.find(part, pos)
            if pos == -1:
                break
            pos += len(part)
        else:
            return True
    return False


def mentions_ai_software(text: str) -> bool:
    return (
        AI_SOFTWARE_RE.search(text) is not None
        or in_order(text, "stable", "diffusion")
        or in_order(text, "black", "forest", "labs")
    )


def mentions_firefly(text: str) -> bool:
    return in_order(text, "adobe", "firefly") or in_order(text, "firefly", "adobe")


def mentions_google_ai(text: str) -> bool:
    # also covers "made ... with ... google ... ai"
    return in_order(text, "google", "ai")
