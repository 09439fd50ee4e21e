#!/usr/bin/env python3
"""
Generates sample-data/reward_export.xlsx, a noisy two-column mining reward
export of the kind a wallet UI produces when its history table is pasted
into a spreadsheet.

Run from the repo root:
    python sample-data/generate_reward_export.py

Problems baked in:
  Sheet "Export"
    - Each event is a stacked block: "XTM" label, blank row, "Received"
      marker, the date, blank row, "#ERROR!" cell, then the amount
    - Some dates are real datetime cells, some are "Mon D, H:MM" text
    - Non-breaking spaces and a zero-width space inside date text
    - "Block #..." rows between events
    - A date whose block never got an amount (superseded by the next date)
    - An amount with three decimals ("3.999"), which must be rejected
    - A trailing date with no amount before the end of the sheet
"""

from datetime import datetime
from pathlib import Path

import openpyxl

OUTPUT = Path(__file__).parent / "reward_export.xlsx"
NBSP = "\N{NO-BREAK SPACE}"
ZWSP = "\N{ZERO WIDTH SPACE}"


def block(date_value, amount_value):
    return [
        ["XTM", "XTM"],
        [None, None],
        ["Received", "Received"],
        [date_value, date_value],
        [None, None],
        ["#ERROR!", "#ERROR!"],
        [amount_value, amount_value],
    ]


rows = [["Date", "Amount"]]
rows += block(datetime(2026, 8, 11, 5, 59), 3.92)                  # structured date
rows += block(f"Aug{NBSP}12,{NBSP}6:03", "4.10")                   # NBSP-laden text date
rows.append(["Block #48211", "Block #48211"])
rows += block("Aug 13, 17:45", "3.999")                            # rejected: three decimals
rows.append(["Aug 14, 8:00", None])                                # superseded, no amount
rows += block(f"Aug 15,{ZWSP} 23:10", 200.17)                      # zero-width space in text
rows.append(["Block #48302", "Block #48302"])
rows.append(["Aug 16, 1:05", None])                                # trailing, exhausted

wb = openpyxl.Workbook()
ws = wb.active
ws.title = "Export"
for row in rows:
    ws.append(row)

wb.save(OUTPUT)
print(f"Created: {OUTPUT}")
