"""
Terminal runner for Cedar.

    cedar steps              list the pipeline
    cedar run [GOAL]         run the flow, confirming each step
    cedar run GOAL --auto    run the flow to completion
"""
