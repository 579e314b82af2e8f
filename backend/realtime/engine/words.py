import random
from typing import List, Optional, Sequence

WORDS = [
    "apple",
    "banana",
    "elephant",
    "guitar",
    "jellyfish",
    "lion",
    "monkey",
    "octopus",
    "penguin",
    "robot",
    "umbrella",
    "whale",
    "zebra",
    "airplane",
    "beach",
    "cloud",
    "dragon",
    "earth",
    "flower",
    "backpack",
    "bicycle",
    "binoculars",
    "calculator",
    "camera",
    "candle",
    "clock",
    "compass",
    "crown",
    "envelope",
    "flashlight",
    "headphones",
    "hourglass",
    "keychain",
    "ladder",
    "lock",
    "microphone",
    "notebook",
    "paintbrush",
    "pillow",
    "scissors",
    "telescope",
    "toothbrush",
    "wallet",
    "watch",
    "chameleon",
    "dolphin",
    "eagle",
    "flamingo",
    "frog",
    "kangaroo",
    "koala",
    "lobster",
    "parrot",
    "peacock",
    "rabbit",
    "seahorse",
    "snail",
    "turtle",
    "wolf",
    "bridge",
    "campfire",
    "castle",
    "classroom",
    "fountain",
    "garage",
    "lighthouse",
    "playground",
    "stadium",
    "treehouse",
    "windmill",
    "ambulance",
    "bulldozer",
    "helicopter",
    "motorcycle",
    "rocket",
    "school",
    "submarine",
    "tractor",
    "engine",
    "dancing",
    "fishing",
    "painting",
    "reading",
    "sleepwalking",
    "skateboarding",
    "snowboarding",
    "surfing",
    "thinking",
    "yawning",
    "avalanche",
    "camping",
    "desert",
    "earthquake",
    "forest",
    "hurricane",
    "island",
    "mountain",
    "rainbow",
    "volcano",
    "waterfall",
    "ice cream",
    "hot air balloon",
    "light bulb",
]


def pick_word_options(
    count: int = 3,
    rng: Optional[random.Random] = None,
    words: Sequence[str] = WORDS,
) -> List[str]:
    rng = rng or random
    pool = list(dict.fromkeys(words))
    return rng.sample(pool, k=min(count, len(pool)))
