"""Service layer: trends, story prompts, video rendering, streaming and the studio workflow."""
