#!filepath: qtdsim/storage/__init__.py
