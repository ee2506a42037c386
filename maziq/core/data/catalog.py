"""
Built-in software catalog — the default set of known tools.

Plain dicts, validated into ``Software`` models by
``maziq.core.catalog.Catalog.builtin()``. Entries without explicit
recipes use their installer adapter's command templates, so a cask
entry only needs its cask name.

Keys are stable identifiers: templates and the history log refer to them.
"""

from __future__ import annotations

from typing import Any

_APPS = "/Applications"


def _cask(
    sid: str,
    name: str,
    category: str,
    summary: str,
    cask: str,
    app: str,
) -> dict[str, Any]:
    """A GUI application installed as a Homebrew cask."""
    return {
        "id": sid,
        "name": name,
        "category": category,
        "summary": summary,
        "kind": "gui",
        "installer": "brew-cask",
        "package": cask,
        "dependencies": ["homebrew"],
        "detection": {"method": "bundle", "path": f"{_APPS}/{app}.app", "app_name": app},
    }


def _cargo(
    sid: str,
    name: str,
    summary: str,
    crate: str,
    program: str,
    **extra: Any,
) -> dict[str, Any]:
    """A cargo-installed Rust CLI."""
    entry: dict[str, Any] = {
        "id": sid,
        "name": name,
        "category": "Rust Stack",
        "summary": summary,
        "installer": "cargo",
        "package": crate,
        "dependencies": ["rustup"],
        "detection": {"method": "command", "program": program, "args": ["--version"]},
    }
    entry.update(extra)
    return entry


def _npm(sid: str, name: str, summary: str, package: str, program: str) -> dict[str, Any]:
    """A globally installed npm CLI (node comes from nvm)."""
    return {
        "id": sid,
        "name": name,
        "category": "JavaScript & AI CLIs",
        "summary": summary,
        "installer": "npm",
        "package": package,
        "dependencies": ["nvm"],
        "detection": {"method": "command", "program": program, "args": ["--version"]},
    }


SOFTWARE: list[dict[str, Any]] = [
    # ── System essentials ────────────────────────────────────────
    {
        "id": "homebrew",
        "name": "Homebrew",
        "category": "System Essentials",
        "summary": "Package manager foundation for macOS.",
        "installer": "script",
        "detection": {
            "method": "command",
            "program": "brew",
            "args": ["--version"],
            "pattern": r"Homebrew\s+(\d+\.\d+\.\d+)",
        },
        "install": '/bin/bash -c "$(curl -fsSL https://raw.githubusercontent.com/Homebrew/install/HEAD/install.sh)"',
        "update": "brew update && brew upgrade",
        "uninstall": {"manual": "Follow https://docs.brew.sh/FAQ#how-do-i-uninstall-homebrew"},
    },
    {
        "id": "xcode_clt",
        "name": "Xcode Command-Line Tools",
        "category": "System Essentials",
        "summary": "Compilers and SDK headers from Apple.",
        "kind": "sdk",
        "installer": "script",
        "detection": {"method": "command", "program": "xcodebuild", "args": ["-version"]},
        "install": "xcode-select --install",
        "update": {"manual": "Use Software Update or run `softwareupdate --all --install --force`."},
        "uninstall": "sudo rm -rf /Library/Developer/CommandLineTools",
    },
    # ── Browsers ─────────────────────────────────────────────────
    _cask("brave", "Brave Browser", "Browsers",
          "Privacy-focused Chromium browser.", "brave-browser", "Brave Browser"),
    _cask("firefox", "Firefox", "Browsers",
          "Mozilla's versatile browser.", "firefox", "Firefox"),
    _cask("chrome", "Google Chrome", "Browsers",
          "Google's mainstream browser.", "google-chrome", "Google Chrome"),
    # ── Editors & IDEs ───────────────────────────────────────────
    _cask("jetbrains_toolbox", "JetBrains Toolbox", "Editors & IDEs",
          "Launcher for JetBrains IDEs (including Android Studio).",
          "jetbrains-toolbox", "JetBrains Toolbox"),
    _cask("cursor", "Cursor", "Editors & IDEs",
          "AI-native editor focused on flow with built-in agent.", "cursor", "Cursor"),
    _cask("windsurf", "Windsurf", "Editors & IDEs",
          "Codeium's AI pair-programming IDE.", "windsurf", "Windsurf"),
    _cask("visual_studio_code", "Visual Studio Code", "Editors & IDEs",
          "Microsoft's extensible editor and IDE.",
          "visual-studio-code", "Visual Studio Code"),
    _cask("zed_stable", "Zed (Stable)", "Editors & IDEs",
          "Zed editor stable channel.", "zed", "Zed"),
    _cask("zed_preview", "Zed (Preview)", "Editors & IDEs",
          "Zed editor preview channel.", "zed@preview", "Zed Preview"),
    # ── Desktop utilities / API tools ────────────────────────────
    _cask("raycast", "Raycast", "Desktop Utilities",
          "Productivity command palette for macOS.", "raycast", "Raycast"),
    _cask("docker_desktop", "Docker Desktop", "Desktop Utilities",
          "GUI and runtime for local Docker containers.", "docker", "Docker"),
    _cask("postman", "Postman", "API & Testing",
          "API design, testing, and collaboration suite.", "postman", "Postman"),
    _cask("yaak", "Yaak", "API & Testing",
          "Lightweight REST and GraphQL API client.", "yaak", "Yaak"),
    _cask("bruno", "Bruno", "API & Testing",
          "Text-based API collections and testing tool.", "bruno", "Bruno"),
    # ── Rust stack ───────────────────────────────────────────────
    {
        "id": "rustup",
        "name": "Rustup",
        "category": "Rust Stack",
        "summary": "Rust toolchain installer and updater.",
        "kind": "sdk",
        "installer": "direct-download",
        "detection": {
            "method": "command",
            "program": "rustup",
            "args": ["--version"],
            "pattern": r"rustup\s+(\d+\.\d+\.\d+)",
        },
        "install": "curl --proto '=https' --tlsv1.2 -sSf https://sh.rustup.rs | sh -s -- -y",
        "update": "rustup self update && rustup update",
        "uninstall": "rustup self uninstall -y",
    },
    {
        "id": "rust_stable",
        "name": "Rust Toolchain (Stable)",
        "category": "Rust Stack",
        "summary": "Sets Rust stable toolchain as default.",
        "kind": "sdk",
        "installer": "rustup",
        "package": "stable",
        "aliases": ["rust"],
        "dependencies": ["rustup"],
        "detection": {
            "method": "command",
            "program": "rustup",
            "args": ["run", "stable", "rustc", "--version"],
            "pattern": r"rustc\s+(\d+\.\d+\.\d+)",
        },
        "install": "rustup toolchain install stable && rustup default stable",
    },
    {
        "id": "rust_nightly",
        "name": "Rust Toolchain (Nightly)",
        "category": "Rust Stack",
        "summary": "Installs nightly Rust toolchain.",
        "kind": "sdk",
        "installer": "rustup",
        "package": "nightly",
        "dependencies": ["rustup"],
        "detection": {
            "method": "command",
            "program": "rustup",
            "args": ["run", "nightly", "rustc", "--version"],
            "pattern": r"rustc\s+(\d+\.\d+\.\d+)",
        },
    },
    _cargo("cargo_just", "cargo-just", "Handy task runner for Rust projects.",
           "just", "just"),
    _cargo("cargo_binstall", "cargo-binstall", "Fast binary installer for cargo packages.",
           "cargo-binstall", "cargo-binstall"),
    _cargo("cargo_watch", "cargo-watch", "Auto compile/test watcher for Rust.",
           "cargo-watch", "cargo-watch"),
    _cargo("simple_http_server", "simple-http-server (nightly)",
           "Nightly-only HTTP dev server.", "simple-http-server", "simple-http-server",
           dependencies=["rustup", "rust_nightly"],
           install="cargo +nightly install simple-http-server",
           update="cargo +nightly install simple-http-server --force"),
    _cargo("dioxus_cli", "Dioxus CLI", "Rust-based cross-platform UI tooling.",
           "dioxus-cli", "dioxus"),
    _cargo("yew_cli", "Yew CLI", "CLI helpers for Yew web apps.", "trunk", "trunk",
           install="rustup target add wasm32-unknown-unknown && cargo install trunk"),
    _cargo("leptos_cli", "Leptos CLI", "Full-stack Leptos project manager.",
           "cargo-leptos", "cargo-leptos",
           install="rustup target add wasm32-unknown-unknown && cargo install cargo-leptos"),
    # ── JavaScript runtimes ──────────────────────────────────────
    {
        "id": "nvm",
        "name": "Node Version Manager (nvm)",
        "category": "JavaScript & AI CLIs",
        "summary": "Manage multiple Node.js versions.",
        "installer": "direct-download",
        "detection": {
            "method": "manual",
            "note": "Run `nvm --version` after sourcing your shell profile.",
        },
        "install": (
            "curl -o- https://raw.githubusercontent.com/nvm-sh/nvm/v0.40.1/install.sh | bash"
            ' && export NVM_DIR="$HOME/.nvm" && . "$NVM_DIR/nvm.sh" && nvm install --lts'
        ),
        "update": {"manual": "Pull the latest nvm via git or rerun the installer script."},
        "uninstall": {"manual": "Remove ~/.nvm and related shell profile entries."},
    },
    {
        "id": "bun",
        "name": "Bun Runtime",
        "category": "JavaScript & AI CLIs",
        "summary": "All-in-one JS runtime/bundler.",
        "installer": "direct-download",
        "detection": {"method": "command", "program": "bun", "args": ["--version"]},
        "install": "curl -fsSL https://bun.sh/install | bash",
        "update": "bun upgrade",
        "uninstall": {"manual": "Remove ~/.bun and PATH exports."},
    },
    # ── Languages / mobile ───────────────────────────────────────
    {
        "id": "go",
        "name": "Go Toolchain",
        "category": "Languages",
        "summary": "Google's Go language toolchain.",
        "kind": "sdk",
        "installer": "brew",
        "dependencies": ["homebrew"],
        "detection": {"method": "package", "package": "go"},
    },
    {
        "id": "flutter",
        "name": "Flutter SDK",
        "category": "Mobile / Cross-Platform",
        "summary": "Google's UI SDK for mobile & desktop.",
        "kind": "sdk",
        "installer": "brew-cask",
        "dependencies": ["homebrew"],
        "detection": {"method": "package", "package": "flutter"},
        "update": "flutter upgrade",
    },
    _cask("android_studio", "Android Studio", "Mobile / Cross-Platform",
          "Google's official IDE for Android development.",
          "android-studio", "Android Studio"),
    {
        "id": "react_native_cli",
        "name": "React Native CLI",
        "category": "Mobile / Cross-Platform",
        "summary": "React Native project scaffolding CLI.",
        "installer": "npm",
        "package": "react-native-cli",
        "dependencies": ["nvm"],
        "detection": {"method": "command", "program": "react-native", "args": ["--version"]},
    },
    # ── JavaScript & AI CLIs ─────────────────────────────────────
    _npm("electron_forge", "Electron Forge",
         "Electron scaffolding, packaging, and release tooling.",
         "@electron-forge/cli", "electron-forge"),
    _npm("codex_cli", "Codex CLI", "Command-line interface for Codex-style AI coding.",
         "codex-cli", "codex"),
    _npm("claude_cli", "Claude CLI", "Anthropic Claude assistant from the terminal.",
         "claude-cli", "claude"),
    _npm("claude_multi_cli", "Claude Multi CLI",
         "Manage multiple Claude sessions and keys via CLI.",
         "claude-multi-cli", "claude-multi"),
    _npm("kimi_cli", "Kimi CLI", "Terminal gateway to Kimi AI assistant.",
         "kimi-cli", "kimi"),
    _npm("gemini_cli", "Gemini CLI", "Interact with Google Gemini models from the CLI.",
         "gemini-cli", "gemini"),
    _npm("qwen_cli", "Qwen CLI", "CLI helper for Alibaba Cloud's Qwen assistants.",
         "qwen-cli", "qwen"),
    _npm("opencode_cli", "Opencode CLI", "Dispatch open-source code LLMs via CLI workflows.",
         "opencode-cli", "opencode"),
]
