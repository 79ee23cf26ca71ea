"""Shared entity models for rowgraph tests (see ``tests._support.models``)."""
