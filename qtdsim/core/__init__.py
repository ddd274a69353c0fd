#!filepath: qtdsim/core/__init__.py
