# Colour tokens per theme. Every theme must define every key.
THEMES = {
    "Light": {
        "bg": "#FFFFFF",
        "text": "#1D1D1F",
        "running_text": "#1E8449",
        "muted_text": "#8E8E93",
        "button_bg": "#E5E5EA",
        "button_hover": "#D1D1D6",
        "button_text": "#1D1D1F",
        "input_bg": "#F2F2F7",
        "separator": "#D1D1D6",
        "row_separator": "#E5E5EA",
    },
    "Dark": {
        "bg": "#1C1C1E",
        "text": "#F2F2F7",
        "running_text": "#58D68D",
        "muted_text": "#8E8E93",
        "button_bg": "#3A3A3C",
        "button_hover": "#48484A",
        "button_text": "#F2F2F7",
        "input_bg": "#2C2C2E",
        "separator": "#3A3A3C",
        "row_separator": "#2C2C2E",
    },
}
