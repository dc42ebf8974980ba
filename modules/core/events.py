EXPRESSION_SMILE = "smile"
EXPRESSION_SAD = "sad"
EXPRESSION_ANGRY = "angry"
EXPRESSION_SURPRISED = "surprised"
EXPRESSION_FUNNY_FACE = "funnyFace"
EXPRESSION_DEFAULT = "default"

FACIAL_EXPRESSIONS = (
    EXPRESSION_SMILE,
    EXPRESSION_SAD,
    EXPRESSION_ANGRY,
    EXPRESSION_SURPRISED,
    EXPRESSION_FUNNY_FACE,
    EXPRESSION_DEFAULT,
)

ANIMATION_TALKING_0 = "Talking_0"
ANIMATION_TALKING_1 = "Talking_1"
ANIMATION_TALKING_2 = "Talking_2"
ANIMATION_CRYING = "Crying"
ANIMATION_LAUGHING = "Laughing"
ANIMATION_RUMBA = "Rumba"
ANIMATION_IDLE = "Idle"
ANIMATION_TERRIFIED = "Terrified"
ANIMATION_ANGRY = "Angry"

ANIMATIONS = (
    ANIMATION_TALKING_0,
    ANIMATION_TALKING_1,
    ANIMATION_TALKING_2,
    ANIMATION_CRYING,
    ANIMATION_LAUGHING,
    ANIMATION_RUMBA,
    ANIMATION_IDLE,
    ANIMATION_TERRIFIED,
    ANIMATION_ANGRY,
)

RELEVANT = "RELEVANT"
IRRELEVANT = "IRRELEVANT"

TEXT_GREETING = "Hey there! How can I help you with IDMS information today?"
TEXT_MISSING_KEYS = "Please ensure your API keys are properly set up!"
TEXT_OUT_OF_DOMAIN = (
    "I'm Kom Ai specialized in IDMS ERP systems and GST integration. "
    "I don't have information on topics outside this domain. "
    "Can I help you with any IDMS or GST related questions?"
)
TEXT_UNPARSEABLE = "Sorry, I couldn't generate a proper response. Could you try again?"
TEXT_LLM_FAILED = "Sorry, there was an error processing your message with the Groq API."
