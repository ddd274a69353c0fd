#!filepath: qtdsim/observability/__init__.py
