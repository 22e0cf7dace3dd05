"""Friendly display names exchanged during the handshake."""

import random
from typing import Optional

ADJECTIVES = (
    "Gentle", "Sunny", "Misty", "Golden", "Peaceful",
    "Rolling", "Mossy", "Whispering", "Bright", "Clear",
    "Rustic", "Starry", "Mountain", "Valley", "Creek",
    "Pine", "Oak", "Willow", "Meadow", "Forest",
    "Spring", "Summer", "Autumn", "Winter", "Morning",
    "Evening", "Highland", "Lowland", "Ridge",
)

NOUNS = (
    "Farm", "Barn", "Creek", "Ridge", "Valley",
    "Meadow", "Field", "Hollow", "Brook", "Stream",
    "Mountain", "Hill", "Forest", "Woods", "Trail",
    "Pasture", "Garden", "Orchard", "Grove", "Glade",
    "Cabin", "Homestead", "Ranch", "Cottage", "Cove",
    "Pond", "Lake", "River", "Spring", "Falls",
    "Oak", "Pine", "Maple", "Birch", "Cedar",
    "Bear", "Deer", "Fox", "Hawk", "Dove",
    "Rabbit", "Squirrel", "Turkey", "Goose", "Duck",
    "Cow", "Horse", "Sheep", "Goat", "Chicken",
    "Bee", "Butterfly", "Dragonfly", "Firefly", "Cricket",
)


def generate_name(rng: Optional[random.Random] = None) -> str:
    """Return a random "<Adjective> <Noun>" display name."""
    rng = rng or random
    return f"{rng.choice(ADJECTIVES)} {rng.choice(NOUNS)}"
