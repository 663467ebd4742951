"""
Approval email resender for the Sparta RAB/SPK workflow.

A Flask API that looks up an approval row in Google Sheets, resolves
the next approvers from the branch directory and re-sends the
notification email through Gmail with the stored PDF attachments.
"""

__version__ = "1.0.0"
__author__ = "Sparta Building"
