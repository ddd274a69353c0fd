#!filepath: qtdsim/analysis/__init__.py
