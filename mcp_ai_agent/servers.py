"""
Built-in auto-resolved tool server templates.

Each template describes a published MCP server: how to launch it, which
tools it offers and which environment variables it needs. Pass one
directly in an agent's `tools_configs`, or refer to it by name from YAML
through `CATALOG`.
"""

from typing import Dict

from mcp_ai_agent.config import AutoParameter, MCPAutoConfig, MCPConfig, StdioServerConfig

REFERENCE_SERVERS_REPO = "https://github.com/modelcontextprotocol/servers"

aws_kb_retrieval = MCPAutoConfig(
    name="aws-kb-retrieval",
    description=(
        "An MCP server implementation for retrieving information from the AWS Knowledge Base "
        "using the Bedrock Agent Runtime. Provides RAG (Retrieval-Augmented Generation) "
        "capabilities to retrieve context from AWS Knowledge Bases based on queries."
    ),
    tools_description={
        "retrieve_from_aws_kb": (
            "Perform retrieval operations using the AWS Knowledge Base. Inputs include query "
            "(string), knowledgeBaseId (string), and n (optional number, default: 3) for number "
            "of results to retrieve."
        ),
    },
    parameters={
        "AWS_ACCESS_KEY_ID": AutoParameter("AWS access key ID for authentication", required=True),
        "AWS_SECRET_ACCESS_KEY": AutoParameter(
            "AWS secret access key for authentication", required=True
        ),
        "AWS_REGION": AutoParameter(
            "AWS region where the Knowledge Base is located", required=True
        ),
    },
    mcp_config=StdioServerConfig(
        command="npx", args=["-y", "@modelcontextprotocol/server-aws-kb-retrieval"]
    ),
    github_repo=REFERENCE_SERVERS_REPO,
    license="MIT",
)

brave_search = MCPAutoConfig(
    name="brave-search",
    description=(
        "An MCP server implementation that integrates the Brave Search API, providing both web "
        "and local search capabilities. Features include web search with pagination and "
        "filtering, local search for businesses and services, flexible content filtering, and "
        "smart fallbacks from local to web search when needed."
    ),
    tools_description={
        "brave_web_search": (
            "Execute web searches with pagination and filtering. Inputs include query (string), "
            "count (optional number, max 20), and offset (optional number, max 9)."
        ),
        "brave_local_search": (
            "Search for local businesses and services. Inputs include query (string) and count "
            "(optional number, max 20). Automatically falls back to web search if no local "
            "results found."
        ),
    },
    parameters={
        "BRAVE_API_KEY": AutoParameter("API key for Brave Search API", required=True),
    },
    mcp_config=StdioServerConfig(
        command="npx", args=["-y", "@modelcontextprotocol/server-brave-search"]
    ),
    github_repo=REFERENCE_SERVERS_REPO,
    license="MIT",
)

everart = MCPAutoConfig(
    name="everart",
    description=(
        "An MCP server implementation that integrates with EverArt's API for image generation. "
        "Supports multiple AI models for image creation with customizable parameters. "
        "Generated images are opened in the browser and URLs are returned for reference."
    ),
    tools_description={
        "generate_image": (
            "Generates images based on text prompts with multiple model options. Parameters "
            "include prompt (required), model ID (optional), and image count (optional). Opens "
            "the generated image in the browser and returns the URL. All images are generated "
            "at 1024x1024 resolution."
        ),
    },
    parameters={
        "EVERART_API_KEY": AutoParameter("API key for EverArt image generation API", required=True),
    },
    mcp_config=StdioServerConfig(command="npx", args=["-y", "@modelcontextprotocol/server-everart"]),
    github_repo=REFERENCE_SERVERS_REPO,
    license="MIT",
)

fetch = MCPAutoConfig(
    name="fetch",
    description=(
        "A Model Context Protocol server that provides web content fetching capabilities. "
        "Enables LLMs to retrieve and process content from web pages, converting HTML to "
        "markdown for easier consumption. Supports content truncation and pagination through "
        "start_index parameter."
    ),
    tools_description={
        "fetch": (
            "Fetches a URL from the internet and extracts its contents as markdown. Parameters "
            "include url (required), max_length (optional, default: 5000), start_index "
            "(optional, default: 0), and raw (optional, default: false)."
        ),
    },
    parameters={},
    mcp_config=StdioServerConfig(command="uvx", args=["mcp-server-fetch"]),
    github_repo=REFERENCE_SERVERS_REPO,
    license="MIT",
)

file_system = MCPAutoConfig(
    name="filesystem",
    description=(
        "An MCP server implementation for filesystem operations, providing capabilities to "
        "read/write files, create/list/delete directories, move files/directories, search "
        "files, and get file metadata. The server only allows operations within directories "
        "specified via arguments."
    ),
    tools_description={
        "read_file": "Read complete contents of a file with UTF-8 encoding. Input: path (string).",
        "read_multiple_files": (
            "Read multiple files simultaneously. Input: paths (string[]). Failed reads won't "
            "stop the entire operation."
        ),
        "write_file": (
            "Create new file or overwrite existing. Inputs: path (string) for file location, "
            "content (string) for file content."
        ),
        "edit_file": (
            "Make selective edits using advanced pattern matching and formatting. Supports "
            "line-based and multi-line content matching, whitespace normalization with "
            "indentation preservation, and more."
        ),
        "create_directory": (
            "Create new directory or ensure it exists. Input: path (string). Creates parent "
            "directories if needed."
        ),
        "list_directory": (
            "List directory contents with [FILE] or [DIR] prefixes. Input: path (string)."
        ),
        "move_file": (
            "Move or rename files and directories. Inputs: source (string), destination (string)."
        ),
        "search_files": (
            "Recursively search for files/directories. Inputs: path (string) for starting "
            "directory, pattern (string) for search pattern, excludePatterns (string[]) for "
            "excluding patterns."
        ),
        "get_file_info": (
            "Get detailed file/directory metadata including size, timestamps, type, and "
            "permissions. Input: path (string)."
        ),
        "list_allowed_directories": (
            "List all directories the server is allowed to access. No input required."
        ),
    },
    parameters={},
    mcp_config=StdioServerConfig(
        command="npx", args=["-y", "@modelcontextprotocol/server-filesystem", "~/Documents"]
    ),
    github_repo=REFERENCE_SERVERS_REPO,
    license="MIT",
)

firecrawl_mcp = MCPAutoConfig(
    name="firecrawl-mcp",
    description=(
        "A MCP server implementation that integrates with Firecrawl for web scraping capabilities"
    ),
    tools_description={
        "firecrawl_scrape": (
            "Scrape content from a single URL with advanced options like content filtering, "
            "mobile/desktop viewport, and custom wait times."
        ),
        "firecrawl_batch_scrape": (
            "Scrape multiple URLs efficiently with built-in rate limiting and parallel processing."
        ),
        "firecrawl_check_batch_status": "Check the status of a batch scraping operation.",
        "firecrawl_search": "Search the web and optionally extract content from search results.",
        "firecrawl_crawl": (
            "Start an asynchronous crawl with advanced options like depth control and link "
            "filtering."
        ),
        "firecrawl_extract": "Extract structured information from web pages using LLM capabilities.",
        "firecrawl_deep_research": (
            "Conduct deep web research on a query using intelligent crawling, search, and LLM "
            "analysis."
        ),
        "firecrawl_generate_llmstxt": (
            "Generate a standardized llms.txt file for a given domain defining how LLMs should "
            "interact with the site."
        ),
    },
    parameters={
        "FIRECRAWL_API_KEY": AutoParameter(
            "Your FireCrawl API key (required for cloud API)", required=True
        ),
        "FIRECRAWL_API_URL": AutoParameter("Custom API endpoint for self-hosted instances"),
        "FIRECRAWL_RETRY_MAX_ATTEMPTS": AutoParameter("Maximum number of retry attempts"),
        "FIRECRAWL_RETRY_INITIAL_DELAY": AutoParameter(
            "Initial delay in milliseconds before first retry"
        ),
        "FIRECRAWL_RETRY_MAX_DELAY": AutoParameter("Maximum delay in milliseconds between retries"),
        "FIRECRAWL_RETRY_BACKOFF_FACTOR": AutoParameter("Exponential backoff multiplier"),
        "FIRECRAWL_CREDIT_WARNING_THRESHOLD": AutoParameter("Credit usage warning threshold"),
        "FIRECRAWL_CREDIT_CRITICAL_THRESHOLD": AutoParameter("Credit usage critical threshold"),
    },
    mcp_config=StdioServerConfig(command="npx", args=["-y", "firecrawl-mcp"]),
    github_repo="https://github.com/mendableai/firecrawl-mcp-server",
    license="MIT",
)

memory = MCPAutoConfig(
    name="memory",
    description="A basic implementation of persistent memory using a local knowledge graph",
    tools_description={
        "create_entities": (
            "Create multiple new entities in the knowledge graph with names, types, and "
            "observations. Ignores entities with existing names."
        ),
        "create_relations": (
            "Create multiple new relations between entities with source, target, and "
            "relationship type. Skips duplicate relations."
        ),
        "add_observations": (
            "Add new observations to existing entities. Returns added observations per entity. "
            "Fails if entity doesn't exist."
        ),
        "delete_entities": (
            "Remove entities and their relations with cascading deletion. Silent operation if "
            "entity doesn't exist."
        ),
        "delete_observations": (
            "Remove specific observations from entities. Silent operation if observation "
            "doesn't exist."
        ),
        "delete_relations": (
            "Remove specific relations from the graph. Silent operation if relation doesn't exist."
        ),
        "read_graph": "Read the entire knowledge graph structure with all entities and relations.",
        "search_nodes": (
            "Search for nodes based on query across entity names, types, and observation "
            "content. Returns matching entities and their relations."
        ),
        "open_nodes": (
            "Retrieve specific nodes by name, returning requested entities and relations "
            "between them. Silently skips non-existent nodes."
        ),
    },
    parameters={},
    mcp_config=StdioServerConfig(command="npx", args=["-y", "@modelcontextprotocol/server-memory"]),
    github_repo=REFERENCE_SERVERS_REPO,
    license="MIT",
)

sequential_thinking = MCPAutoConfig(
    name="sequential-thinking",
    description=(
        "An MCP server implementation that provides a tool for dynamic and reflective "
        "problem-solving through a structured thinking process. Features include breaking down "
        "complex problems into manageable steps, revising thoughts as understanding deepens, "
        "branching into alternative reasoning paths, and adjusting the total number of "
        "thoughts dynamically."
    ),
    tools_description={
        "sequential_thinking": (
            "Facilitates a detailed, step-by-step thinking process for problem-solving and "
            "analysis. Inputs include the current thought, thought number, total thoughts "
            "needed, and options for revisions and branching. Designed for breaking down complex "
            "problems, planning with room for revision, and maintaining context over multiple "
            "steps."
        ),
    },
    parameters={},
    mcp_config=StdioServerConfig(
        command="npx", args=["-y", "@modelcontextprotocol/server-sequential-thinking"]
    ),
    github_repo=REFERENCE_SERVERS_REPO,
    license="MIT",
)

sqlite = MCPAutoConfig(
    name="sqlite",
    description=(
        "A Model Context Protocol (MCP) server implementation that provides database "
        "interaction and business intelligence capabilities through SQLite. This server "
        "enables running SQL queries, analyzing business data, and automatically generating "
        "business insight memos. Features include executing read/write queries, managing "
        "database schema, and generating business insights."
    ),
    tools_description={
        "read_query": "Execute SELECT queries to read data from the database.",
        "write_query": "Execute INSERT, UPDATE, or DELETE queries to modify data.",
        "create_table": "Create new tables in the database.",
        "list_tables": "Get a list of all tables in the database.",
        "describe_table": "View schema information for a specific table.",
        "append_insight": "Add new business insights to the memo resource.",
    },
    parameters={
        "SQLITE_DB_PATH": AutoParameter("Path to the SQLite database file", required=True),
    },
    mcp_config=MCPConfig(
        mcp_servers={
            "sqlite": StdioServerConfig(
                command="docker",
                args=[
                    "run",
                    "--rm",
                    "-i",
                    "-v",
                    "mcp-test:/mcp",
                    "mcp/sqlite",
                    "--db-path",
                    "${SQLITE_DB_PATH}",
                ],
            ),
        }
    ),
    github_repo=REFERENCE_SERVERS_REPO,
    license="MIT",
)

CATALOG: Dict[str, MCPAutoConfig] = {
    server.name: server
    for server in (
        aws_kb_retrieval,
        brave_search,
        everart,
        fetch,
        file_system,
        firecrawl_mcp,
        memory,
        sequential_thinking,
        sqlite,
    )
}
