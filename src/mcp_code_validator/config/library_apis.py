"""Known public APIs of popular JavaScript/TypeScript libraries.

Used to seed Library nodes from a project's package.json so validation can
tell a real library member from an invented one.
"""

import json

from loguru import logger

from ..core.models import LibraryAPI

KNOWN_LIBRARY_APIS: dict[str, dict[str, list[str]]] = {
    "react": {
        "functions": [
            "createElement", "createContext", "forwardRef", "memo", "lazy",
            "Suspense", "Fragment", "StrictMode", "cloneElement", "isValidElement",
        ],
        "classes": ["Component", "PureComponent"],
        "constants": ["version"],
        "types": ["FC", "ReactNode", "ReactElement", "Props", "RefObject"],
        "hooks": [
            "useState", "useEffect", "useContext", "useReducer", "useCallback",
            "useMemo", "useRef", "useImperativeHandle", "useLayoutEffect",
            "useDebugValue", "useDeferredValue", "useTransition", "useId",
            "useSyncExternalStore",
        ],
    },
    "react-dom": {
        "functions": ["render", "unmountComponentAtNode", "findDOMNode", "createPortal"],
        "constants": ["version"],
        "types": ["Root"],
    },
    "next": {
        "functions": [
            "getServerSideProps", "getStaticProps", "getStaticPaths",
            "generateMetadata", "generateViewport",
        ],
        "types": [
            "NextPage", "NextPageContext", "GetServerSideProps", "GetStaticProps",
            "GetStaticPaths", "NextApiRequest", "NextApiResponse",
        ],
    },
    "next/router": {
        "functions": ["useRouter", "withRouter"],
        "types": ["NextRouter"],
    },
    "next/navigation": {
        "functions": [
            "useRouter", "usePathname", "useSearchParams", "useParams",
            "redirect", "notFound", "permanentRedirect",
        ],
    },
    "lodash": {
        "functions": [
            "map", "filter", "reduce", "find", "forEach", "clone", "cloneDeep",
            "merge", "omit", "pick", "get", "set", "has", "isArray", "isObject",
            "isString", "isNumber", "isEmpty", "isEqual", "debounce", "throttle",
            "capitalize", "camelCase", "kebabCase", "snakeCase", "startCase",
            "chunk", "compact", "concat", "difference", "intersection", "union",
            "uniq", "zip", "flatten", "groupBy", "keyBy", "orderBy", "sortBy",
        ],
        "constants": ["VERSION"],
    },
    "axios": {
        "functions": ["get", "post", "put", "delete", "patch", "head", "options", "request"],
        "classes": ["Cancel", "CancelToken"],
        "constants": ["defaults"],
        "types": ["AxiosResponse", "AxiosError", "AxiosRequestConfig"],
    },
    "express": {
        "functions": ["Router", "static", "json", "urlencoded"],
        "classes": ["Express"],
        "types": ["Request", "Response", "NextFunction", "Application"],
    },
    "@emotion/react": {
        "functions": ["css", "jsx", "Global", "ClassNames", "keyframes"],
        "types": ["Interpolation", "SerializedStyles"],
    },
    "styled-components": {
        "functions": ["styled", "css", "keyframes", "createGlobalStyle", "ThemeProvider"],
        "types": ["DefaultTheme", "StyledComponent"],
    },
    "date-fns": {
        "functions": [
            "format", "parse", "addDays", "subDays", "addMonths", "subMonths",
            "addYears", "subYears", "differenceInDays", "differenceInMonths",
            "isAfter", "isBefore", "isEqual", "isValid", "startOfDay", "endOfDay",
        ],
    },
    "uuid": {
        "functions": ["v1", "v3", "v4", "v5", "validate", "version"],
    },
    "zod": {
        "functions": ["z", "object", "string", "number", "boolean", "array", "union", "optional"],
        "classes": ["ZodSchema", "ZodError"],
        "types": ["ZodType", "ZodString", "ZodNumber", "ZodBoolean"],
    },
}


def get_library_api(library_name: str) -> LibraryAPI | None:
    """Look up a library, falling back to its base package for sub-modules.

    ``next/router`` resolves directly; ``lodash/fp`` falls back to ``lodash``.
    Scoped packages (``@emotion/react``) only match exactly.
    """
    entry = KNOWN_LIBRARY_APIS.get(library_name)
    name = library_name

    if entry is None and not library_name.startswith("@"):
        name = library_name.split("/", 1)[0]
        entry = KNOWN_LIBRARY_APIS.get(name)

    if entry is None:
        return None

    return LibraryAPI(
        name=name,
        functions=list(entry.get("functions", [])),
        classes=list(entry.get("classes", [])),
        constants=list(entry.get("constants", [])),
        types=list(entry.get("types", [])),
        hooks=list(entry.get("hooks", [])),
    )


def parse_package_json_dependencies(content: str) -> list[str]:
    """Names from dependencies, devDependencies and peerDependencies.

    Malformed content yields an empty list.
    """
    try:
        package = json.loads(content)
    except json.JSONDecodeError as e:
        logger.warning(f"Failed to parse package.json: {e}")
        return []

    if not isinstance(package, dict):
        return []

    names: dict[str, None] = {}
    for section in ("dependencies", "devDependencies", "peerDependencies"):
        deps = package.get(section) or {}
        if isinstance(deps, dict):
            for name in deps:
                names[name] = None
    return list(names)
