"""Static knowledge used to steer prompt synthesis.

Slot values are hints for the model ("e.g., ..."), never user data.
"""

from __future__ import annotations

from enum import Enum
from typing import Dict


class Branch(str, Enum):
    MODERN_HUMAN = "modern_human"
    PREHISTORIC_HUMAN = "prehistoric_human"
    MODERN_CREATURE = "modern_creature"
    PREHISTORIC_CREATURE = "prehistoric_creature"
    LANDSCAPE_SCENE = "landscape_scene"


DEFAULT_OPTION = "Mặc định"

BRANCH_LABELS: Dict[Branch, str] = {
    Branch.MODERN_HUMAN: "Con người Hiện đại",
    Branch.PREHISTORIC_HUMAN: "Con người Tiền sử",
    Branch.MODERN_CREATURE: "Sinh vật Hiện đại",
    Branch.PREHISTORIC_CREATURE: "Sinh vật Tiền sử",
    Branch.LANDSCAPE_SCENE: "Cảnh quan / Bối cảnh",
}

COMMON_SLOTS: Dict[str, str] = {
    "art_style": "e.g., photorealistic, cinematic, anime, watercolor, impressionistic",
    "lighting": "e.g., soft morning light, dramatic chiaroscuro, neon glow, golden hour",
    "color_palette": "e.g., vibrant and saturated, monochrome, pastel, earthy tones",
    "camera_shot": "e.g., wide-angle, macro, aerial view, dutch angle, portrait",
    "composition": "e.g., rule of thirds, leading lines, symmetrical, minimalist",
    "detail_level": "e.g., hyper-detailed, intricate, simple, abstract",
    "negative_prompt_suggestions": "e.g., ugly, deformed, blurry, bad anatomy, extra limbs",
}

# Slot names are unique across branches; only COMMON_SLOTS is shared.
BRANCH_SLOTS: Dict[Branch, Dict[str, str]] = {
    Branch.MODERN_HUMAN: {
        "character_concept": "e.g., cyberpunk hacker, elegant queen, gritty detective, futuristic soldier",
        "clothing_style": "e.g., high-fashion couture, tactical gear, vintage streetwear, formal suit",
        "facial_expression": "e.g., determined, serene, melancholic, joyful",
        "setting": "e.g., neon-lit city street, opulent throne room, abandoned warehouse, high-tech lab",
    },
    Branch.PREHISTORIC_HUMAN: {
        "prehistoric_character_concept": "e.g., wise shaman, fierce hunter, tribal chieftain, young gatherer",
        "clothing_materials": "e.g., animal hides, woven fibers, bone ornaments, leather straps",
        "tools_weapons": "e.g., stone-tipped spear, obsidian knife, bow and arrow, ceremonial staff",
        "environment": "e.g., lush jungle, icy tundra, savanna plains, cave dwelling with fire",
    },
    Branch.MODERN_CREATURE: {
        "modern_creature_concept": "e.g., bio-mechanical dragon, ethereal forest spirit, robotic wolf, colossal city leviathan",
        "key_features": "e.g., glowing eyes, metallic feathers, crystalline scales, integrated weaponry",
        "abilities": "e.g., breathes plasma, camouflages with light, controls technology, telekinetic powers",
        "habitat": "e.g., post-apocalyptic city ruins, enchanted digital forest, deep-sea trench, orbital station",
    },
    Branch.PREHISTORIC_CREATURE: {
        "creature_concept": "e.g., tyrannosaurus rex with feathers, saber-toothed tiger, woolly mammoth, velociraptor pack",
        "physical_attributes": "e.g., massive size, sharp claws, powerful jaws, thick fur, vibrant plumage",
        "behavior": "e.g., hunting, grazing, migrating, defending territory",
        "prehistoric_habitat": "e.g., primordial swamp, volcanic landscape, dense fern forest, vast grasslands",
    },
    Branch.LANDSCAPE_SCENE: {
        "scene_concept": "e.g., floating sky islands, futuristic underwater city, enchanted alien forest, volcanic wasteland",
        "key_elements": "e.g., strange flora and fauna, towering crystal structures, ancient ruins, cascading waterfalls",
        "time_of_day": "e.g., twin-sun sunset, bioluminescent night, perpetual twilight, stormy afternoon",
        "mood_atmosphere": "e.g., mysterious and awe-inspiring, peaceful and serene, dangerous and foreboding, vibrant and full of life",
    },
}

TECH_OPTION_LABELS: Dict[str, str] = {
    "style": "Phong cách",
    "layout": "Bố cục",
    "angle": "Góc máy",
    "quality": "Chất lượng",
}

TECH_OPTION_CHOICES: Dict[str, list[str]] = {
    "style": [DEFAULT_OPTION, "Cinematic", "Photorealistic", "Anime", "Fantasy Art", "Cyberpunk", "Vintage"],
    "layout": [DEFAULT_OPTION, "Portrait", "Landscape", "Close-up", "Wide Shot"],
    "angle": [DEFAULT_OPTION, "Eye-level", "High-angle", "Low-angle", "Dutch Angle"],
    "quality": [DEFAULT_OPTION, "Hyper-detailed", "8K", "Sharp focus", "Intricate details"],
}

TECH_OPTION_TRANSLATIONS: Dict[str, str] = {
    "Cinematic": "Điện ảnh",
    "Photorealistic": "Chân thực",
    "Anime": "Anime / Hoạt hình",
    "Fantasy Art": "Nghệ thuật Giả tưởng",
    "Cyberpunk": "Viễn tưởng Cyberpunk",
    "Vintage": "Cổ điển",
    "Portrait": "Chân dung",
    "Landscape": "Phong cảnh",
    "Close-up": "Cận cảnh",
    "Wide Shot": "Toàn cảnh",
    "Eye-level": "Ngang tầm mắt",
    "High-angle": "Góc cao",
    "Low-angle": "Góc thấp",
    "Dutch Angle": "Góc nghiêng",
    "Hyper-detailed": "Siêu chi tiết",
    "Sharp focus": "Lấy nét sắc sảo",
    "Intricate details": "Chi tiết phức tạp",
}


def parse_branch(value: str | Branch | None) -> Branch | None:
    """Return the Branch for a tag, None for an empty value, ValueError otherwise."""
    if value is None or isinstance(value, Branch):
        return value
    key = value.strip().lower()
    if not key:
        return None
    return Branch(key)


def branch_structure(branch: Branch) -> Dict[str, Dict[str, str]]:
    """Common slots plus the slots owned by ``branch``, keyed the way the model sees them."""
    return {
        "common": dict(COMMON_SLOTS),
        branch.value: dict(BRANCH_SLOTS[branch]),
    }


def catalog_payload() -> Dict[str, object]:
    return {
        "branches": [
            {
                "id": branch.value,
                "label": BRANCH_LABELS[branch],
                "slots": dict(BRANCH_SLOTS[branch]),
            }
            for branch in Branch
        ],
        "common_slots": dict(COMMON_SLOTS),
        "tech_options": {
            axis: {
                "label": TECH_OPTION_LABELS[axis],
                "choices": [
                    {"value": choice, "label": TECH_OPTION_TRANSLATIONS.get(choice, choice)}
                    for choice in choices
                ],
            }
            for axis, choices in TECH_OPTION_CHOICES.items()
        },
        "default_option": DEFAULT_OPTION,
    }
