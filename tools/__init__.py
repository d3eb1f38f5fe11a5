# ============================================================================
# TOOLS
# ============================================================================
# EPOCH: 5 - DAG ORCHESTRATION
# STATUS: Tools - Command line utilities
# PURPOSE: Local entry points into the engine
# CREATED: 19 OCT 2026
# ============================================================================
