#!filepath: qtdsim/utils/__init__.py
