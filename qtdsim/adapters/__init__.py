#!filepath: qtdsim/adapters/__init__.py
