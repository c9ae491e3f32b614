"""Rule-based intent classifier for the equipment assistant.

Utterances are lowercased and checked against an ordered rule table. A rule
matches when any of its trigger phrases occurs anywhere in the utterance
(plain substring containment, so "party" also matches "partycity"). The first
matching rule wins; when nothing matches the default template is returned.
Rule order is therefore the only tie-break: pricing questions are answered
before any equipment catalogue even if the utterance names a machine.
"""

from typing import Dict, Optional, Sequence

from ..domain.models import Category, ResponseTemplate, Rule


WELCOME_TEMPLATE = ResponseTemplate(
    content=(
        "Hi! I'm **Kayd**, your equipment assistant. I can help you:\n\n"
        "• Find the right equipment for any project\n"
        "• Compare prices and get the best deals\n"
        "• Check availability and make reservations\n"
        "• Answer questions about renting\n\n"
        "How can I help you today?"
    ),
    suggestions=(
        "Find equipment near me",
        "Compare excavator prices",
        "What do I need for a party?",
        "Show trending rentals",
    ),
    category=Category.INFO,
)

DEFAULT_TEMPLATE = ResponseTemplate(
    content=(
        "I'd love to help you find the right equipment!\n\n"
        "To give you useful recommendations, tell me:\n\n"
        "• **What** - type of equipment or project\n"
        "• **When** - your rental dates\n"
        "• **Where** - your location\n"
        "• **Budget** - price range (optional)\n\n"
        "Or pick one of the options below to get started."
    ),
    suggestions=(
        "Browse all equipment",
        "Construction tools",
        "Photography gear",
        "Event supplies",
    ),
    category=Category.INFO,
)

RULES: Sequence[Rule] = (
    Rule(
        name="pricing",
        triggers=("price", "cost", "budget", "cheap", "expensive", "how much", "afford"),
        template=ResponseTemplate(
            content=(
                "**Pricing Guide**\n\n"
                "Typical daily rates on the marketplace:\n"
                "• **Power Tools** - $25-100/day\n"
                "• **Photography** - $50-250/day\n"
                "• **Heavy Equipment** - $200-800/day\n"
                "• **Event Supplies** - $100-500/day\n\n"
                "Book for 7+ days or bundle items for extra discounts.\n"
                "What's your budget range?"
            ),
            suggestions=(
                "Under $100/day",
                "$100-300/day",
                "Show weekly deals",
                "Compare similar items",
            ),
            category=Category.COMPARISON,
        ),
    ),
    Rule(
        name="availability",
        triggers=("availab", "book", "reserve", "schedule", "dates"),
        template=ResponseTemplate(
            content=(
                "**Checking Availability**\n\n"
                "Booking takes four steps:\n"
                "1. Select your dates\n"
                "2. Choose equipment\n"
                "3. Confirm and pay securely\n"
                "4. Pick up or get delivery\n\n"
                "Most equipment is available this week. Heavy machinery needs "
                "2-3 days notice.\nWhat dates are you looking at?"
            ),
            suggestions=(
                "Book for this weekend",
                "Next week availability",
                "Custom dates",
                "See calendar",
            ),
            category=Category.BOOKING,
        ),
    ),
    Rule(
        name="delivery",
        triggers=("deliver", "pickup", "pick up", "pick-up", "shipping", "transport"),
        template=ResponseTemplate(
            content=(
                "**Delivery & Pickup**\n\n"
                "• **Pickup** - free from the owner's location\n"
                "• **Local delivery** - from $25\n"
                "• **Job-site delivery** - available for heavy equipment\n"
                "• **Same-day** - offered on many items\n\n"
                "Where should the equipment go?"
            ),
            suggestions=(
                "Get a delivery quote",
                "Free pickup only",
                "Same-day delivery",
            ),
            category=Category.INFO,
        ),
    ),
    Rule(
        name="construction",
        triggers=("construction", "renovation", "remodel"),
        template=ResponseTemplate(
            content=(
                "**Construction Equipment**\n\n"
                "For most building and renovation jobs you'll want:\n"
                "• **Mini excavator** - from $250/day\n"
                "• **Skid steer** - from $295/day\n"
                "• **Concrete mixer** - from $75/day\n"
                "• **Scaffolding set** - from $60/day\n\n"
                "All rentals include safety equipment.\n"
                "What size is your project?"
            ),
            suggestions=(
                "Small home project",
                "Full renovation",
                "Commercial site",
                "Need an operator",
            ),
            category=Category.RECOMMENDATION,
        ),
    ),
    Rule(
        name="power_tools",
        triggers=("tool", "drill", "saw", "power", "sander"),
        template=ResponseTemplate(
            content=(
                "**Power Tools**\n\n"
                "Popular this week:\n"
                "• DeWalt 20V Drill Kit - $25/day\n"
                "• Makita Circular Saw - $30/day\n"
                "• Bosch Rotary Hammer - $45/day\n"
                "• Festool Sander - $40/day\n\n"
                "What are you working on?"
            ),
            suggestions=(
                "Drills & drivers",
                "Saws",
                "Sanders & grinders",
                "Weekend tool bundle",
            ),
            category=Category.SEARCH,
        ),
    ),
    Rule(
        name="camera",
        triggers=("camera", "photo", "video", "shoot", "film", "lens"),
        template=ResponseTemplate(
            content=(
                "**Photography & Video Gear**\n\n"
                "**Cameras:**\n"
                "• Sony A7IV Full Kit - $125/day\n"
                "• Canon R5 Pro Package - $150/day\n"
                "• RED Komodo Cinema - $350/day\n\n"
                "Lens kits, lighting packages and gimbals are available too.\n"
                "What type of shoot are you planning?"
            ),
            suggestions=(
                "Wedding photography",
                "Short film",
                "Real estate",
                "YouTube/content creation",
            ),
            category=Category.SEARCH,
        ),
    ),
    Rule(
        name="events",
        triggers=("wedding", "party", "event", "celebration"),
        template=ResponseTemplate(
            content=(
                "**Event Equipment Packages**\n\n"
                "• **Tent & Shelter** - 20x40 frame tent (80 guests) $495/day\n"
                "• **Sound** - DJ package $295/day\n"
                "• **Lighting** - string lights $85/day\n\n"
                "**Complete Wedding Package** starts at $1,200/day with tent, "
                "tables, chairs and lighting.\n"
                "How many guests are you expecting?"
            ),
            suggestions=(
                "50-100 guests",
                "100-200 guests",
                "200+ guests",
                "Custom package",
            ),
            category=Category.RECOMMENDATION,
        ),
    ),
    Rule(
        name="heavy_equipment",
        triggers=("excavator", "bulldozer", "backhoe", "heavy", "dig"),
        template=ResponseTemplate(
            content=(
                "**Heavy Equipment Available**\n\n"
                "**Top Picks:**\n"
                "• **CAT 320 Excavator** - $450/day\n"
                "• **John Deere Backhoe** - $380/day\n"
                "• **Bobcat Skid Steer** - $295/day\n\n"
                "Operator training and job-site delivery are available.\n"
                "What size project are you working on?"
            ),
            suggestions=(
                "Mini excavator",
                "Full-size machines",
                "Need an operator",
                "Compare all",
            ),
            category=Category.SEARCH,
        ),
    ),
    Rule(
        name="location",
        triggers=("near me", "nearby", "location", "local"),
        template=ResponseTemplate(
            content=(
                "**Equipment Near You**\n\n"
                "Popular rentals close by:\n"
                "• CAT 320 Excavator - 2.3 miles\n"
                "• Sony A7IV Camera Kit - 3.1 miles\n"
                "• DeWalt Power Tool Set - 4.5 miles\n\n"
                "Free pickup is available and delivery starts at $25.\n"
                "Want me to show these on a map?"
            ),
            suggestions=(
                "Show on map",
                "Filter by distance",
                "Free delivery only",
                "Available today",
            ),
            category=Category.SEARCH,
        ),
    ),
    Rule(
        name="help",
        triggers=("help", "how", "explain", "guide", "tutorial"),
        template=ResponseTemplate(
            content=(
                "**How Renting Works**\n\n"
                "1. **Search** - find what you need\n"
                "2. **Book** - select dates and reserve\n"
                "3. **Pay** - secure checkout\n"
                "4. **Pickup** - or get delivery\n"
                "5. **Return** - drop off and leave a review\n\n"
                "Every owner is verified and damage protection is available.\n"
                "What would you like to know more about?"
            ),
            suggestions=(
                "How to book",
                "Payment options",
                "Cancellation policy",
                "List my equipment",
            ),
            category=Category.INFO,
        ),
    ),
)

# Preset utterances offered on an empty conversation.
QUICK_ACTIONS: Dict[str, str] = {
    "power_tools": "Show me available power tools for a weekend project",
    "photography": "I need professional camera equipment for a photoshoot",
    "heavy_equipment": "Find me an excavator or bulldozer for construction",
    "events": "What equipment do I need for a 100-person outdoor wedding?",
}


def match_rule(utterance: Optional[str], rules: Sequence[Rule] = RULES) -> Optional[Rule]:
    """Return the first rule with a trigger contained in the utterance."""
    normalized = (utterance or "").lower()
    for rule in rules:
        if any(trigger in normalized for trigger in rule.triggers):
            return rule
    return None


def classify(utterance: Optional[str], rules: Sequence[Rule] = RULES) -> ResponseTemplate:
    """Map an utterance to a response template. Never fails."""
    rule = match_rule(utterance, rules)
    return DEFAULT_TEMPLATE if rule is None else rule.template
