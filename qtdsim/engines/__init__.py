#!filepath: qtdsim/engines/__init__.py
