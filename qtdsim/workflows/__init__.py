#!filepath: qtdsim/workflows/__init__.py
