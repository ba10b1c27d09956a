"""
PTB Registry Backend Entry Point

Run with: uvicorn ptb_registry.main:app --reload --port 8000
Or: python main.py
"""

if __name__ == "__main__":
    import uvicorn
    uvicorn.run("ptb_registry.main:app", host="0.0.0.0", port=8000, reload=True)
