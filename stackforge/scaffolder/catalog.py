"""Static package and component lists consumed by the pipeline.

These are configuration data, not logic.  Versions are pinned per package
(``name@version``); ``latest`` follows each registry's dist-tag.
"""

from __future__ import annotations

UI_CLI_PACKAGE = "shadcn@latest"
UI_BASE_COLOR = "slate"

UI_COMPONENTS: tuple[str, ...] = (
    "alert-dialog",
    "dialog",
    "alert",
    "badge",
    "avatar",
    "dropdown-menu",
    "empty",
    "skeleton",
    "breadcrumb",
    "kbd",
    "label",
    "pagination",
    "field",
    "item",
    "textarea",
    "tooltip",
    "select",
    "separator",
)

FRONTEND_PACKAGES: dict[str, str] = {
    "gsap": "latest",
    "lenis": "latest",
    "lucide-react": "latest",
    "framer-motion": "latest",
    "lottie-react": "latest",
    "axios": "latest",
    "date-fns": "latest",
    "sonner": "latest",
    "three": "latest",
    "@react-three/drei": "latest",
    "@tanstack/react-query": "latest",
    "react-hook-form": "latest",
    "zod": "latest",
    "@t3-oss/env-nextjs": "latest",
    "clsx": "latest",
    "tailwind-merge": "latest",
}

BACKEND_PACKAGES: dict[str, str] = {
    "helmet": "latest",
    "cookie-parser": "latest",
    "dotenv": "latest",
    "class-validator": "latest",
    "class-transformer": "latest",
    "@supabase/supabase-js": "latest",
    "multer": "latest",
    "passport": "latest",
    "@nestjs/passport": "latest",
    "@nestjs/jwt": "latest",
    "@nestjs/config": "latest",
    "@nestjs/throttler": "latest",
    "argon2": "latest",
    "@nestjs/swagger": "latest",
    "prisma": "latest",
    "@prisma/client": "latest",
}

BACKEND_TYPE_PACKAGES: tuple[str, ...] = (
    "@types/cookie-parser",
    "@types/multer",
)

ROOT_DEV_DEPENDENCIES: dict[str, str] = {
    "concurrently": "latest",
}


def pinned(packages: dict[str, str]) -> tuple[str, ...]:
    """Render ``{name: version}`` as ``("name@version", ...)`` preserving order."""
    return tuple(f"{name}@{version}" for name, version in packages.items())
