from __future__ import annotations

"""
Prompt templates sent to Gemini.

Each template is a fixed instruction with a few named interpolation points.
The builders are pure so the exact text the model receives can be checked
without a network call.
"""

from .models import ProductData

# Keys the analysis call must return. Also used to filter the response.
ANALYSIS_KEYS = ("title", "description", "keyFeatures", "price", "brandVoice")

# The four buyer archetypes every batch is built around, with their focus.
PERSONA_ARCHETYPES = (
    (
        "Self-Employed Nail Technician (Freelancer)",
        "Speed, ROI, Client Retention.",
    ),
    (
        "Nail Technician working in a salon (Employee)",
        "Ease of use, Consistency, Keeping the boss happy.",
    ),
    (
        "Salon Owner (Business Minded)",
        "Profit Margins, Speed of Service, Professional Image.",
    ),
    (
        "DIY Nail Enthusiast (Home User)",
        'Saving money, "Me time", Professional results at home.',
    ),
)

PERSONA_COUNT = len(PERSONA_ARCHETYPES)


def build_analysis_prompt(url: str) -> str:
    """Prompt for extracting product details from a URL and/or image."""
    intro = (
        "Analyze the provided product URL and/or image and extract complete "
        "product details for a marketing campaign.\n\n"
        f"Product URL: {url or 'N/A'}\n"
    )

    steps = (
        "Task:\n"
        "1. Use Google Search to find the exact product page. Prefer the URL "
        "provided when there is one.\n"
        "2. Extract the Product Title exactly as it appears on the page.\n"
        "3. Extract a detailed Description.\n"
        "4. Extract 5-7 Key Features.\n"
        "5. CRITICAL: Find the current selling Price.\n"
        "   - Use the main price shown on the product page.\n"
        "   - For South African stores, report the price in ZAR (R).\n"
        "   - If both a sale price and a regular price are shown, return the "
        "current sale price.\n"
        '   - Format as currency symbol followed by the amount (e.g. "R450.00").\n'
        "6. Describe the Brand Voice of the copy in a word or two (e.g. "
        '"Playful", "Professional", "Sassy").\n'
    )

    output = (
        "Return a valid JSON object with exactly these keys:\n"
        "- title: string\n"
        "- description: string\n"
        "- keyFeatures: string[]\n"
        "- price: string\n"
        "- brandVoice: string\n\n"
        "Return ONLY the raw JSON object. Do not use Markdown formatting or code blocks."
    )

    return intro + "\n" + steps + "\n" + output


def build_persona_prompt(product: ProductData) -> str:
    """
    Strategist prompt asking for exactly four personas, one per archetype.

    The persona call also sends PERSONA_SCHEMA, so this text only needs to
    describe content, not the JSON layout.
    """
    role = (
        "ACT AS: A world-class Meta Ads media buyer and creative strategist "
        "(top 1% expertise).\n"
        "CONTEXT: You are creating high-performance ad assets for a beauty "
        "e-commerce brand.\n"
    )

    analysis = (
        "PRODUCT ANALYSIS:\n"
        f"Title: {product.title}\n"
        f"Description: {product.description}\n"
        f"Key Features: {', '.join(product.key_features)}\n"
        f"Price: {product.price}\n"
        f"Brand Voice: {product.brand_voice} (make sure this voice runs through all of the copy)\n"
        f"URL: {product.url or 'N/A'}\n"
    )

    archetypes = "\n".join(
        f"{i}. {name} - Focus: {focus}"
        for i, (name, focus) in enumerate(PERSONA_ARCHETYPES, start=1)
    )
    task = (
        "TASK:\n"
        f"Generate exactly {PERSONA_COUNT} distinct, high-converting marketing "
        "personas, one for each of these categories:\n"
        f"{archetypes}\n"
    )

    requirements = (
        "REQUIREMENTS FOR EACH PERSONA:\n\n"
        "1. Persona deep dive:\n"
        "   - ID: unique identifier within this set (e.g. TECH-FREE, TECH-SALON, OWNER, DIY).\n"
        "   - Emotional Trigger: the deep psychological reason to buy (e.g. "
        '"Fear of lifting causing client complaints", "Pride in creating art").\n'
        "   - Pain Points: specific, visceral frustrations.\n\n"
        "2. Meta ad copy (primary text):\n"
        "   - No generic marketing fluff. Write like a human, in the vernacular of the persona.\n"
        "   - STRUCTURE:\n"
        "     [HOOK: 1-2 short, punchy sentences that stop the scroll and hit the pain or desire.]\n"
        '     [BODY: 2-3 short paragraphs separated with " \\n " line breaks. Agitate the problem, '
        "then present the product as the specific solution. Focus on benefits (speed, durability, "
        "profit, ease). Use emojis sparingly if the brand voice allows.]\n"
        "     [CTA: a clear, imperative command.]\n\n"
        "3. Headline:\n"
        "   - High CTR, under 40 characters.\n"
        '   - Examples: "Stop Wasting Gel", "No More Chipping", "Client Fave".\n\n'
        "4. Creative strategy (visuals):\n"
        "   - Go beyond generic product shots; propose performance-creative ideas such as "
        "UGC-style angles, split screens (old way vs new way), macro texture shots or "
        "ASMR-style application.\n"
        "   - prompt_for_imagen: a detailed, art-directed image generation prompt covering "
        'lighting (e.g. "soft ring light", "harsh flash"), texture (e.g. "viscous, glossy gel '
        'drip") and context.\n'
        "   - video_script_draft: for VIDEO concepts only, a fast-paced TikTok/Reels style script.\n\n"
        "5. Targeting:\n"
        "   - Precise interest targeting (brands such as OPI or Young Nails, behaviours, or "
        "broad interests for DIY).\n"
    )

    output = (
        "OUTPUT:\n"
        "Return a SINGLE JSON object containing a 'generated_personas' array that matches the schema."
    )

    return "\n".join([role, analysis, task, requirements, output])


def build_visual_prompt(creative_prompt: str) -> str:
    """The creative direction is already a complete prompt; send it as is."""
    return creative_prompt
