"""Request payloads and response models."""
