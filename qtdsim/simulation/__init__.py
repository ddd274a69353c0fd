#!filepath: qtdsim/simulation/__init__.py
