"""Operations modules — flow-level logic kept out of the window.

Each module contains plain functions that operate on a GraphModel.
GraphEditorWindow wires these to toolbar buttons and reports failures
with message boxes.
"""
