"""HTTP surface for the topic map."""
