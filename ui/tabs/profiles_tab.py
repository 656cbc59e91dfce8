from __future__ import annotations

import tkinter as tk
from tkinter import ttk


def build_profiles_tab(app, tab: ttk.Frame) -> None:
    tab.rowconfigure(0, weight=1)

    profile_frame = ttk.LabelFrame(tab, text="Profiles", padding=8)
    profile_frame.grid(row=0, column=0, sticky="nsew")
    profile_frame.rowconfigure(0, weight=1)

    app.profile_listbox = tk.Listbox(
        profile_frame,
        height=14,
        width=34,
        exportselection=False,
        activestyle="none",
        font=("TkFixedFont", 9),
    )
    app.profile_listbox.grid(row=0, column=0, columnspan=3, sticky="nsew")
    app.profile_listbox.bind("<<ListboxSelect>>", app._on_profile_selected, add="+")

    ttk.Button(profile_frame, text="+ New Profile", command=app._new_profile).grid(
        row=1, column=0, sticky="w", pady=(6, 0)
    )
    ttk.Button(profile_frame, text="Enable/Disable", command=app._toggle_selected_enabled).grid(
        row=1, column=1, sticky="w", padx=(6, 0), pady=(6, 0)
    )
    ttk.Button(profile_frame, text="Delete", command=app._delete_selected_profile).grid(
        row=1, column=2, sticky="w", padx=(6, 0), pady=(6, 0)
    )

    ttk.Label(
        profile_frame,
        text="> running   [on] listens for its hotkey",
        foreground="#4b5563",
    ).grid(row=2, column=0, columnspan=3, sticky="w", pady=(6, 0))
