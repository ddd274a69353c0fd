#!filepath: qtdsim/pipeline/__init__.py
