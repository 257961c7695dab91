"""oppbot - Lark group bot that turns chat transcripts into product-opportunity reports."""

__version__ = "0.1.0"
__logo__ = "🎯"
