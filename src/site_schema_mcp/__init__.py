"""Content model inference for static-site repositories."""
