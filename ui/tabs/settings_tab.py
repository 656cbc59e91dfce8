from __future__ import annotations

from tkinter import ttk

from clickengine.config import MAX_CPS, MIN_CPS
from clickengine.models import ActivationMode, ClickPattern, MouseButton


def build_settings_tab(app, tab: ttk.Frame) -> None:
    tab.columnconfigure(0, weight=1)

    settings_frame = ttk.LabelFrame(tab, text="Settings", padding=10)
    settings_frame.grid(row=0, column=0, sticky="nsew")
    app.settings_frame = settings_frame

    ttk.Label(settings_frame, text="Name:").grid(row=0, column=0, sticky="w", pady=3)
    ttk.Entry(settings_frame, textvariable=app.name_var, width=26).grid(row=0, column=1, sticky="w", pady=3)

    ttk.Label(settings_frame, text="Mouse button:").grid(row=1, column=0, sticky="w", pady=3)
    ttk.Combobox(
        settings_frame,
        textvariable=app.button_var,
        values=[button.value for button in MouseButton],
        state="readonly",
        width=14,
    ).grid(row=1, column=1, sticky="w", pady=3)

    ttk.Label(settings_frame, text="Click pattern:").grid(row=2, column=0, sticky="w", pady=3)
    ttk.Combobox(
        settings_frame,
        textvariable=app.pattern_var,
        values=[pattern.value for pattern in ClickPattern],
        state="readonly",
        width=14,
    ).grid(row=2, column=1, sticky="w", pady=3)

    ttk.Label(settings_frame, text="Activation:").grid(row=3, column=0, sticky="w", pady=3)
    ttk.Combobox(
        settings_frame,
        textvariable=app.activation_var,
        values=[mode.value for mode in ActivationMode],
        state="readonly",
        width=14,
    ).grid(row=3, column=1, sticky="w", pady=3)

    ttk.Label(settings_frame, text="Hotkey:").grid(row=4, column=0, sticky="w", pady=3)
    ttk.Entry(settings_frame, textvariable=app.hotkey_var, width=20).grid(row=4, column=1, sticky="w", pady=3)

    ttk.Label(settings_frame, text="Clicks per second:").grid(row=5, column=0, sticky="w", pady=3)
    ttk.Spinbox(
        settings_frame,
        textvariable=app.cps_var,
        from_=MIN_CPS,
        to=MAX_CPS,
        increment=1,
        width=8,
    ).grid(row=5, column=1, sticky="w", pady=3)

    ttk.Checkbutton(
        settings_frame,
        text="Enabled (listen for hotkey)",
        variable=app.enabled_var,
    ).grid(row=6, column=0, columnspan=2, sticky="w", pady=(4, 2))

    ttk.Button(settings_frame, text="Save profile", command=app._save_settings).grid(
        row=7, column=0, sticky="w", pady=(8, 0)
    )

    ttk.Label(
        settings_frame,
        text=(
            "Hotkey format: <ctrl>+<shift>+<f8>, <alt>+a\n"
            "toggle: press to start, press again to stop\n"
            "hold: clicks while the hotkey is held\n"
            f"{MIN_CPS} clicks per second disables clicking"
        ),
        foreground="#4b5563",
        justify="left",
    ).grid(row=8, column=0, columnspan=2, sticky="w", pady=(10, 0))

    ttk.Label(
        settings_frame,
        text=f"Profiles file: {app.store.path}",
        foreground="#4b5563",
        wraplength=380,
    ).grid(row=9, column=0, columnspan=2, sticky="w", pady=(6, 0))
